from __future__ import annotations

import time
from typing import TYPE_CHECKING

from .constants import (
    ANSI_CLEAR_LINE,
    ANSI_CURSOR_HOME,
    ANSI_DEFAULT_FG,
    ANSI_HIDE_CURSOR,
    ANSI_INVERT_OFF,
    ANSI_INVERT_ON,
    ANSI_SHOW_CURSOR,
    HL_NORMAL,
    KILN_MESSAGE_TIMEOUT,
    KILN_VERSION,
)
from .document import Document
from .syntax import syntax_to_color

if TYPE_CHECKING:
    from .editor import Editor


def _b(text: str) -> bytes:
    return text.encode("latin-1", errors="replace")


def draw_welcome(doc: Document, ab: bytearray) -> None:
    welcome = f"Kiln editor -- version {KILN_VERSION}"[: doc.screencols]
    padding = (doc.screencols - len(welcome)) // 2
    if padding:
        ab += b"~"
        padding -= 1
    ab += b" " * padding
    ab += _b(welcome)


def draw_row(doc: Document, filerow: int, ab: bytearray) -> None:
    row = doc.rows[filerow]
    text = row.render[doc.coloff : doc.coloff + doc.screencols]
    hl = row.hl[doc.coloff : doc.coloff + doc.screencols]
    current_color = -1
    for ch, h in zip(text, hl):
        code = ord(ch)
        if code < 32 or code == 127:
            sym = chr(ord("@") + code) if code <= 26 else "?"
            ab += ANSI_INVERT_ON
            ab += _b(sym)
            ab += ANSI_INVERT_OFF
            if current_color != -1:
                ab += f"\x1b[{current_color}m".encode()
        elif h == HL_NORMAL:
            if current_color != -1:
                ab += ANSI_DEFAULT_FG
                current_color = -1
            ab += _b(ch)
        else:
            color = syntax_to_color(h)
            if color != current_color:
                current_color = color
                ab += f"\x1b[{color}m".encode()
            ab += _b(ch)
    ab += ANSI_DEFAULT_FG


def draw_rows(doc: Document, ab: bytearray) -> None:
    for y in range(doc.screenrows):
        filerow = y + doc.rowoff
        if filerow >= doc.numrows:
            # Centre of the content area; the two bars are not counted.
            if doc.numrows == 0 and y == doc.screenrows // 2:
                draw_welcome(doc, ab)
            else:
                ab += b"~"
        else:
            draw_row(doc, filerow, ab)
        ab += ANSI_CLEAR_LINE
        ab += b"\r\n"


def draw_status_bar(doc: Document, ab: bytearray) -> None:
    ab += ANSI_INVERT_ON
    filename = doc.filename or "[No Name]"
    modified = "(modified)" if doc.dirty else ""
    status = f"{filename:.20} - {doc.numrows} lines {modified}"[: doc.screencols]
    filetype = doc.syntax.filetype if doc.syntax else "no ft"
    rstatus = f"{filetype} | {doc.cy + 1}/{doc.numrows}"
    ab += _b(status)
    fill = len(status)
    while fill < doc.screencols:
        if doc.screencols - fill == len(rstatus):
            ab += _b(rstatus)
            break
        ab += b" "
        fill += 1
    ab += ANSI_INVERT_OFF
    ab += b"\r\n"


def draw_message_bar(
    doc: Document,
    ab: bytearray,
    timeout: float = KILN_MESSAGE_TIMEOUT,
    now: float | None = None,
) -> None:
    ab += ANSI_CLEAR_LINE
    now = time.time() if now is None else now
    if doc.statusmsg and now - doc.statusmsg_time < timeout:
        ab += _b(doc.statusmsg[: doc.screencols])


def build_frame(doc: Document, message_timeout: float = KILN_MESSAGE_TIMEOUT) -> bytes:
    doc.scroll()

    ab = bytearray()
    ab += ANSI_HIDE_CURSOR
    ab += ANSI_CURSOR_HOME
    draw_rows(doc, ab)
    draw_status_bar(doc, ab)
    draw_message_bar(doc, ab, message_timeout)
    ab += f"\x1b[{doc.cy - doc.rowoff + 1};{doc.rx - doc.coloff + 1}H".encode()
    ab += ANSI_SHOW_CURSOR
    return bytes(ab)


def refresh_screen(editor: Editor) -> None:
    editor.terminal.write(build_frame(editor.doc, editor.message_timeout))
