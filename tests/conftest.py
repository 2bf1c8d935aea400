"""Shared fixtures: an in-memory terminal and document builders."""

from __future__ import annotations

from collections import deque

import pytest

from kiln.document import Document
from kiln.editor import Editor
from kiln.terminal import KeyDecoder

KEYS: dict[str, bytes] = {
    "ENTER": b"\r",
    "ESC": b"\x1b",
    "BACKSPACE": b"\x7f",
    "TAB": b"\t",
    "UP": b"\x1b[A",
    "DOWN": b"\x1b[B",
    "RIGHT": b"\x1b[C",
    "LEFT": b"\x1b[D",
    "HOME": b"\x1b[H",
    "END": b"\x1b[F",
    "DEL": b"\x1b[3~",
    "PAGE_UP": b"\x1b[5~",
    "PAGE_DOWN": b"\x1b[6~",
}


def ctrl(letter: str) -> bytes:
    return bytes([ord(letter.upper()) & 0x1F])


def key_to_bytes(key: str) -> bytes:
    if key.startswith("CTRL_"):
        return ctrl(key.split("_", 1)[1])
    return KEYS[key]


class FakeTerminal:
    """Scripted input, captured output, fixed window size."""

    def __init__(self, rows: int = 26, cols: int = 80) -> None:
        self.rows = rows
        self.cols = cols
        self.pending: deque[int] = deque()
        self.output = bytearray()
        self.decoder = KeyDecoder(self.read_byte)

    def feed(self, *items: str | bytes) -> None:
        for item in items:
            data = item if isinstance(item, bytes) else key_to_bytes(item)
            self.pending.extend(data)

    def type(self, text: str) -> None:
        self.pending.extend(text.encode("latin-1"))

    def read_byte(self) -> int | None:
        return self.pending.popleft() if self.pending else None

    def read_key(self) -> int:
        if not self.pending:
            raise EOFError("no scripted input left")
        return self.decoder.read_key()

    def write(self, data: bytes) -> None:
        self.output += data

    def window_size(self) -> tuple[int, int]:
        return self.rows, self.cols


@pytest.fixture
def terminal() -> FakeTerminal:
    return FakeTerminal()


@pytest.fixture
def editor(terminal: FakeTerminal) -> Editor:
    return Editor(terminal)


def build_doc(lines: list[str] | None = None, filename: str | None = None, rows: int = 24, cols: int = 80) -> Document:
    doc = Document(screenrows=rows, screencols=cols)
    if filename is not None:
        doc.filename = filename
        doc.select_syntax(filename)
    for line in lines or []:
        doc.insert_row(doc.numrows, line)
    doc.dirty = 0
    return doc


@pytest.fixture
def make_doc():
    return build_doc
