from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any, Callable

from . import __version__
from .config import editor_setting, load_config
from .constants import (
    ANSI_CLEAR_SCREEN,
    ANSI_CURSOR_HOME,
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    BACKSPACE,
    CTRL_F,
    CTRL_H,
    CTRL_L,
    CTRL_Q,
    CTRL_S,
    DEL_KEY,
    END_KEY,
    ENTER,
    ESC,
    HOME_KEY,
    KILN_QUERY_LEN,
    PAGE_DOWN,
    PAGE_UP,
)
from .document import Document
from .errors import TerminalError
from .logging_config import setup_logging
from .search import SearchSession
from .terminal import RawMode, Terminal
from .ui import refresh_screen

logger = logging.getLogger(__name__)

PromptCallback = Callable[[str, int], None]

HELP_MESSAGE = "HELP: Ctrl-S = save | Ctrl-Q = quit | Ctrl-F = find"


class Editor:
    """One editing session: a document, the terminal it is drawn on, and the
    key dispatch between them."""

    def __init__(self, terminal: Terminal, config: dict[str, Any] | None = None) -> None:
        config = config or {}
        self.terminal = terminal
        self.quit_times = editor_setting(config, "quit_times")
        self.message_timeout = editor_setting(config, "message_timeout")
        self.doc = Document(tab_stop=editor_setting(config, "tab_stop"))
        self.quit_remaining = self.quit_times
        self.update_window_size()

    def update_window_size(self) -> None:
        try:
            rows, cols = self.terminal.window_size()
        except OSError as exc:
            raise TerminalError(exc.errno, "unable to query screen size") from exc
        self.doc.screenrows = max(1, rows - 2)
        self.doc.screencols = max(1, cols)

    def handle_sigwinch(self, _signum: int, _frame) -> None:
        self.update_window_size()
        self.refresh_screen()

    def set_status_message(self, fmt: str, *args: object) -> None:
        self.doc.set_status_message(fmt, *args)

    def refresh_screen(self) -> None:
        refresh_screen(self)

    def prompt(self, fmt: str, callback: PromptCallback | None = None) -> str | None:
        """Read a line in the message bar; ``None`` when cancelled with ESC."""
        buf = ""
        while True:
            self.set_status_message(fmt, buf)
            self.refresh_screen()

            c = self.terminal.read_key()
            if c in (DEL_KEY, CTRL_H, BACKSPACE):
                buf = buf[:-1]
            elif c == ESC:
                self.set_status_message("")
                if callback is not None:
                    callback(buf, c)
                return None
            elif c == ENTER:
                if buf:
                    self.set_status_message("")
                    if callback is not None:
                        callback(buf, c)
                    return buf
            elif 32 <= c < 127 and len(buf) < KILN_QUERY_LEN:
                buf += chr(c)

            if callback is not None:
                callback(buf, c)

    def find(self) -> None:
        session = SearchSession(self.doc)
        query = self.prompt("Search: %s (Use ESC/Arrows/Enter)", session.on_key)
        if query is None:
            session.restore_cursor()

    def save(self) -> None:
        doc = self.doc
        if doc.filename is None:
            filename = self.prompt("Save as: %s (ESC to cancel)")
            if filename is None:
                self.set_status_message("Save aborted")
                return
            doc.filename = filename
            doc.select_syntax(filename)
        doc.save()

    def quit(self) -> None:
        self.terminal.write(ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME)
        raise SystemExit(0)

    def process_keypress(self) -> None:
        doc = self.doc
        c = self.terminal.read_key()

        if c == CTRL_Q:
            if doc.dirty:
                self.quit_remaining -= 1
                if self.quit_remaining > 0:
                    plural = "" if self.quit_remaining == 1 else "s"
                    self.set_status_message(
                        "WARNING!!! File has unsaved changes. Press Ctrl-Q %d more time%s to quit.",
                        self.quit_remaining,
                        plural,
                    )
                    return
            self.quit()
        elif c == ENTER:
            doc.insert_newline()
        elif c == CTRL_S:
            self.save()
        elif c == CTRL_F:
            self.find()
        elif c in (BACKSPACE, CTRL_H, DEL_KEY):
            if c == DEL_KEY:
                doc.move_cursor(ARROW_RIGHT)
            doc.delete_char()
        elif c == HOME_KEY:
            doc.move_home()
        elif c == END_KEY:
            doc.move_end()
        elif c == PAGE_UP:
            doc.page_up()
        elif c == PAGE_DOWN:
            doc.page_down()
        elif c in (ARROW_UP, ARROW_DOWN, ARROW_LEFT, ARROW_RIGHT):
            doc.move_cursor(c)
        elif c in (CTRL_L, ESC):
            pass
        else:
            doc.insert_char(chr(c & 0xFF))

        self.quit_remaining = self.quit_times


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kiln", description="A small terminal text editor.")
    parser.add_argument("filename", nargs="?", help="file to edit; omit for an empty buffer")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def handle_termination(signum: int, _frame) -> None:
    """Turn SIGTERM/SIGHUP into ``SystemExit`` so raw mode unwinds."""
    logger.info("terminated by signal %d", signum)
    raise SystemExit(128 + signum)


def _clear_screen(terminal: Terminal) -> None:
    try:
        terminal.write(ANSI_CLEAR_SCREEN + ANSI_CURSOR_HOME)
    except TerminalError:
        # The tty may already be gone (SIGHUP).
        pass


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config()
    setup_logging(config)

    stdin_fd = sys.stdin.fileno()
    stdout_fd = sys.stdout.fileno()
    terminal = Terminal(stdin_fd, stdout_fd)
    try:
        with RawMode(stdin_fd):
            editor = Editor(terminal, config)
            if args.filename:
                editor.doc.open(args.filename)
            signal.signal(signal.SIGWINCH, editor.handle_sigwinch)
            signal.signal(signal.SIGTERM, handle_termination)
            signal.signal(signal.SIGHUP, handle_termination)
            if not editor.doc.statusmsg:
                editor.set_status_message(HELP_MESSAGE)
            while True:
                editor.refresh_screen()
                editor.process_keypress()
    except TerminalError as exc:
        logger.critical("terminal failure: %s", exc)
        _clear_screen(terminal)
        print(f"kiln: {exc.strerror or exc}", file=sys.stderr)
        return 1
    except SystemExit as exc:
        code = exc.code if isinstance(exc.code, int) else 0
        if code:
            _clear_screen(terminal)
        return code
