"""Drive the real editor through a pseudo-terminal."""

from __future__ import annotations

import fcntl
import os
import pty
import select
import signal
import struct
import sys
import termios
import time
from dataclasses import dataclass
from pathlib import Path

import pytest

from conftest import key_to_bytes

ROOT = Path(__file__).resolve().parents[1]
FRAME_END = b"\x1b[?25h"


@dataclass(slots=True)
class SessionResult:
    status: int | None
    timed_out: bool
    transcript: bytes

    @property
    def exit_code(self) -> int | None:
        if self.status is None or not os.WIFEXITED(self.status):
            return None
        return os.WEXITSTATUS(self.status)


def read_ready(fd: int, sink: bytearray, duration_s: float) -> None:
    end = time.time() + duration_s
    while time.time() < end:
        readable, _, _ = select.select([fd], [], [], 0.02)
        if fd not in readable:
            continue
        try:
            data = os.read(fd, 65536)
        except OSError:
            break
        if not data:
            break
        sink.extend(data)


def wait_for_frame(fd: int, sink: bytearray, timeout_s: float) -> None:
    deadline = time.time() + timeout_s
    while FRAME_END not in sink and time.time() < deadline:
        read_ready(fd, sink, 0.05)


def session_env(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT / "src"), env.get("PYTHONPATH")]))
    env["KILN_CONFIG"] = str(tmp_path / "no-config.toml")
    env["TMPDIR"] = str(tmp_path)
    return env


def run_session(
    args: list[str],
    actions: list[str | bytes],
    tmp_path: Path,
    timeout_s: float = 10.0,
    rows: int = 24,
) -> SessionResult:
    env = session_env(tmp_path)

    pid, fd = pty.fork()
    if pid == 0:
        try:
            fcntl.ioctl(0, termios.TIOCSWINSZ, struct.pack("HHHH", rows, 80, 0, 0))
            os.chdir(tmp_path)
            os.execvpe(sys.executable, [sys.executable, "-m", "kiln", *args], env)
        finally:
            os._exit(127)

    transcript = bytearray()
    status: int | None = None
    timed_out = False
    try:
        # Input sent before raw mode is on would be flushed.
        wait_for_frame(fd, transcript, timeout_s)
        for action in actions:
            data = action if isinstance(action, bytes) else key_to_bytes(action)
            os.write(fd, data)
            time.sleep(0.05)
            read_ready(fd, transcript, 0.05)

        deadline = time.time() + timeout_s
        while time.time() < deadline:
            read_ready(fd, transcript, 0.05)
            wpid, wstatus = os.waitpid(pid, os.WNOHANG)
            if wpid == pid:
                status = wstatus
                break

        if status is None:
            timed_out = True
            os.kill(pid, signal.SIGKILL)
            _, status = os.waitpid(pid, 0)
    finally:
        try:
            os.close(fd)
        except OSError:
            pass

    return SessionResult(status=status, timed_out=timed_out, transcript=bytes(transcript))


def test_edit_save_and_quit(tmp_path) -> None:
    path = tmp_path / "out.txt"
    result = run_session(
        [str(path)],
        [b"abc", "ENTER", b"def", "CTRL_S", "CTRL_Q"],
        tmp_path,
    )
    assert not result.timed_out
    assert result.exit_code == 0
    assert path.read_bytes() == b"abc\ndef\n"
    assert b"Kiln editor -- version" in result.transcript


def test_unsaved_changes_need_second_quit(tmp_path) -> None:
    path = tmp_path / "keep.txt"
    path.write_bytes(b"original\n")
    result = run_session(
        [str(path)],
        ["END", b"!", "CTRL_Q", "CTRL_Q"],
        tmp_path,
    )
    assert result.exit_code == 0
    assert b"1 more time" in result.transcript
    assert path.read_bytes() == b"original\n"


def test_merge_rows_with_backspace(tmp_path) -> None:
    path = tmp_path / "merge.txt"
    path.write_bytes(b"one\ntwo\nthree\n")
    result = run_session(
        [str(path)],
        ["DOWN", "DOWN", "BACKSPACE", "CTRL_S", "CTRL_Q"],
        tmp_path,
    )
    assert result.exit_code == 0
    assert path.read_bytes() == b"one\ntwothree\n"


@pytest.mark.parametrize(("rows", "welcome_line"), [(26, 12), (24, 11)])
def test_welcome_line_sits_mid_content_area(tmp_path, rows: int, welcome_line: int) -> None:
    # Two rows go to the status and message bars.
    result = run_session([], ["CTRL_Q"], tmp_path, rows=rows)
    assert result.exit_code == 0
    start = result.transcript.index(b"\x1b[?25l\x1b[H") + len(b"\x1b[?25l\x1b[H")
    frame = result.transcript[start : result.transcript.index(FRAME_END, start)]
    lines = frame.split(b"\r\n")
    assert b"Kiln editor -- version" in lines[welcome_line]
    assert all(line == b"~\x1b[K" for i, line in enumerate(lines[: rows - 2]) if i != welcome_line)


def test_sigterm_restores_terminal_mode(tmp_path) -> None:
    master, slave = os.openpty()
    fcntl.ioctl(slave, termios.TIOCSWINSZ, struct.pack("HHHH", 24, 80, 0, 0))
    cooked = termios.tcgetattr(slave)[3]
    env = session_env(tmp_path)

    pid = os.fork()
    if pid == 0:
        try:
            os.setsid()
            fcntl.ioctl(slave, termios.TIOCSCTTY, 0)
            for target in (0, 1, 2):
                os.dup2(slave, target)
            os.chdir(tmp_path)
            os.execvpe(sys.executable, [sys.executable, "-m", "kiln"], env)
        finally:
            os._exit(127)

    transcript = bytearray()
    try:
        wait_for_frame(master, transcript, 10.0)
        assert termios.tcgetattr(slave)[3] & (termios.ICANON | termios.ECHO) == 0

        os.kill(pid, signal.SIGTERM)
        deadline = time.time() + 10.0
        status = None
        while status is None and time.time() < deadline:
            read_ready(master, transcript, 0.05)
            wpid, wstatus = os.waitpid(pid, os.WNOHANG)
            if wpid == pid:
                status = wstatus
        if status is None:
            os.kill(pid, signal.SIGKILL)
            os.waitpid(pid, 0)
            pytest.fail("editor ignored SIGTERM")

        assert os.WIFEXITED(status)
        assert os.WEXITSTATUS(status) == 128 + signal.SIGTERM
        assert termios.tcgetattr(slave)[3] == cooked
    finally:
        os.close(master)
        os.close(slave)
