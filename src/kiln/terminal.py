from __future__ import annotations

import errno
import fcntl
import logging
import os
import re
import struct
import termios
from contextlib import AbstractContextManager
from typing import Callable

from .constants import (
    ANSI_PROBE_BOTTOM_RIGHT,
    ANSI_QUERY_CURSOR,
    CSI_SIMPLE_MAP,
    CSI_TILDE_MAP,
    ESC,
    KEY_NAMES,
    SS3_SIMPLE_MAP,
)
from .errors import TerminalError

KEY_LOGGER = logging.getLogger("kiln.keyevents")

ByteSource = Callable[[], "int | None"]


class KeyDecoder:
    """Turn raw bytes into key codes.

    After an ESC exactly two more bytes are expected (three for the
    ``ESC [ <digit> ~`` form). If any of them does not arrive before the
    read timeout, or the sequence is unknown, the result is a literal ESC.
    """

    SEQ_LEN = 2

    def __init__(self, read_byte: ByteSource) -> None:
        self.read_byte = read_byte

    def _read_seq(self, count: int) -> list[int] | None:
        seq: list[int] = []
        for _ in range(count):
            b = self.read_byte()
            if b is None:
                return None
            seq.append(b)
        return seq

    def _decode_escape(self) -> int:
        seq = self._read_seq(self.SEQ_LEN)
        if seq is None:
            return ESC
        a, b = seq

        if a == ord("["):
            if ord("0") <= b <= ord("9"):
                tail = self._read_seq(1)
                if tail is None or tail[0] != ord("~"):
                    return ESC
                return CSI_TILDE_MAP.get(b, ESC)
            return CSI_SIMPLE_MAP.get(b, ESC)
        if a == ord("O"):
            return SS3_SIMPLE_MAP.get(b, ESC)
        return ESC

    def read_key(self) -> int:
        while True:
            c = self.read_byte()
            if c is not None:
                break
        key = self._decode_escape() if c == ESC else c
        KEY_LOGGER.debug("key %s", KEY_NAMES.get(key, key))
        return key


class Terminal:
    """Raw byte I/O on a pair of file descriptors."""

    def __init__(self, ifd: int, ofd: int) -> None:
        self.ifd = ifd
        self.ofd = ofd
        self.decoder = KeyDecoder(self.read_byte)

    def read_byte(self) -> int | None:
        try:
            data = os.read(self.ifd, 1)
        except InterruptedError:
            return None
        except BlockingIOError:
            return None
        except OSError as exc:
            raise TerminalError(exc.errno, f"read: {exc.strerror}") from exc
        if not data:
            return None
        return data[0]

    def read_key(self) -> int:
        return self.decoder.read_key()

    def write(self, data: bytes) -> None:
        view = memoryview(data)
        while view:
            try:
                n = os.write(self.ofd, view)
            except InterruptedError:
                continue
            except OSError as exc:
                raise TerminalError(exc.errno, f"write: {exc.strerror}") from exc
            view = view[n:]

    def cursor_position(self) -> tuple[int, int]:
        self.write(ANSI_QUERY_CURSOR)

        buf = bytearray()
        while len(buf) < 31:
            c = self.read_byte()
            if c is None:
                break
            buf.append(c)
            if c == ord("R"):
                break

        match = re.match(rb"\x1b\[(\d+);(\d+)R", bytes(buf))
        if not match:
            raise TerminalError(errno.EIO, "invalid cursor position response")
        return int(match.group(1)), int(match.group(2))

    def window_size(self) -> tuple[int, int]:
        try:
            packed = fcntl.ioctl(self.ofd, termios.TIOCGWINSZ, struct.pack("HHHH", 0, 0, 0, 0))
            rows, cols, _, _ = struct.unpack("HHHH", packed)
            if cols:
                return rows, cols
        except OSError:
            pass

        orig_row, orig_col = self.cursor_position()
        self.write(ANSI_PROBE_BOTTOM_RIGHT)
        rows, cols = self.cursor_position()
        self.write(f"\x1b[{orig_row};{orig_col}H".encode())
        if not rows or not cols:
            raise TerminalError(errno.EIO, "unable to determine window size")
        return rows, cols


class RawMode(AbstractContextManager["RawMode"]):
    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._orig: list | None = None

    def __enter__(self) -> "RawMode":
        if not os.isatty(self.fd):
            raise TerminalError(errno.ENOTTY, "stdin is not a tty")

        try:
            self._orig = termios.tcgetattr(self.fd)
            raw = termios.tcgetattr(self.fd)
            raw[0] &= ~(termios.BRKINT | termios.ICRNL | termios.INPCK | termios.ISTRIP | termios.IXON)
            raw[1] &= ~termios.OPOST
            raw[2] |= termios.CS8
            raw[3] &= ~(termios.ECHO | termios.ICANON | termios.IEXTEN | termios.ISIG)
            raw[6][termios.VMIN] = 0
            raw[6][termios.VTIME] = 1
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, raw)
        except termios.error as exc:
            raise TerminalError(errno.EIO, f"tcsetattr: {exc}") from exc
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._orig is None:
            return
        orig, self._orig = self._orig, None
        try:
            termios.tcsetattr(self.fd, termios.TCSAFLUSH, orig)
        except termios.error as exc:
            raise TerminalError(errno.EIO, f"tcsetattr: {exc}") from exc
