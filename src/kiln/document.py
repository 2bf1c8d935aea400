from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import time

from .constants import (
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    KILN_TAB_STOP,
)
from .errors import OutOfRange
from .models import Row, SyntaxDef
from .rows import cx_to_rx, update_render
from .syntax import highlight_all, select_syntax, update_syntax

logger = logging.getLogger(__name__)


class Document:
    """The text being edited, plus cursor, viewport and status line state.

    ``cx``/``cy`` index into ``chars`` of ``rows[cy]``; ``rx`` is the render
    column of the cursor and is recomputed by :meth:`scroll`.
    """

    def __init__(self, screenrows: int = 0, screencols: int = 0, tab_stop: int = KILN_TAB_STOP) -> None:
        self.rows: list[Row] = []
        self.cx = 0
        self.cy = 0
        self.rx = 0
        self.rowoff = 0
        self.coloff = 0
        self.screenrows = screenrows
        self.screencols = screencols
        self.tab_stop = tab_stop
        self.filename: str | None = None
        self.dirty = 0
        self.syntax: SyntaxDef | None = None
        self.statusmsg = ""
        self.statusmsg_time = 0.0

    @property
    def numrows(self) -> int:
        return len(self.rows)

    @property
    def current_row(self) -> Row | None:
        return self.rows[self.cy] if self.cy < self.numrows else None

    def set_status_message(self, fmt: str, *args: object) -> None:
        self.statusmsg = fmt % args if args else fmt
        self.statusmsg_time = time.time()

    def select_syntax(self, filename: str | None) -> None:
        self.syntax = select_syntax(filename)
        highlight_all(self)

    # Row operations.

    def update_row(self, row: Row) -> None:
        update_render(row, self.tab_stop)
        update_syntax(self, row.idx)

    def insert_row(self, at: int, s: str) -> None:
        if at < 0 or at > self.numrows:
            raise OutOfRange(at, self.numrows)
        self.rows.insert(at, Row(idx=at, chars=s))
        for j in range(at + 1, self.numrows):
            self.rows[j].idx = j
        self.update_row(self.rows[at])
        if at + 1 < self.numrows:
            update_syntax(self, at + 1)
        self.dirty += 1

    def delete_row(self, at: int) -> None:
        if at < 0 or at >= self.numrows:
            return
        del self.rows[at]
        for j in range(at, self.numrows):
            self.rows[j].idx = j
        if at < self.numrows:
            update_syntax(self, at)
        self.dirty += 1

    def row_insert_char(self, row: Row, at: int, c: str) -> None:
        if at < 0 or at > row.size:
            at = row.size
        row.chars = row.chars[:at] + c + row.chars[at:]
        self.update_row(row)
        self.dirty += 1

    def row_append_string(self, row: Row, s: str) -> None:
        row.chars += s
        self.update_row(row)
        self.dirty += 1

    def row_del_char(self, row: Row, at: int) -> None:
        if at < 0 or at >= row.size:
            return
        row.chars = row.chars[:at] + row.chars[at + 1 :]
        self.update_row(row)
        self.dirty += 1

    # Editing at the cursor.

    def insert_char(self, c: str) -> None:
        if self.cy == self.numrows:
            self.insert_row(self.numrows, "")
        self.row_insert_char(self.rows[self.cy], self.cx, c)
        self.cx += 1

    def insert_newline(self) -> None:
        if self.cx == 0:
            self.insert_row(self.cy, "")
        else:
            row = self.rows[self.cy]
            self.insert_row(self.cy + 1, row.chars[self.cx :])
            row.chars = row.chars[: self.cx]
            self.update_row(row)
        self.cy += 1
        self.cx = 0

    def delete_char(self) -> None:
        if self.cy == self.numrows:
            return
        if self.cx == 0 and self.cy == 0:
            return

        row = self.rows[self.cy]
        if self.cx > 0:
            self.row_del_char(row, self.cx - 1)
            self.cx -= 1
        else:
            prev = self.rows[self.cy - 1]
            self.cx = prev.size
            self.row_append_string(prev, row.chars)
            self.delete_row(self.cy)
            self.cy -= 1

    # Cursor motion.

    def move_cursor(self, key: int) -> None:
        row = self.current_row

        if key == ARROW_LEFT:
            if self.cx != 0:
                self.cx -= 1
            elif self.cy > 0:
                self.cy -= 1
                self.cx = self.rows[self.cy].size
        elif key == ARROW_RIGHT:
            if row is not None and self.cx < row.size:
                self.cx += 1
            elif row is not None and self.cx == row.size:
                self.cy += 1
                self.cx = 0
        elif key == ARROW_UP:
            if self.cy != 0:
                self.cy -= 1
        elif key == ARROW_DOWN:
            if self.cy < self.numrows:
                self.cy += 1

        row = self.current_row
        rowlen = row.size if row is not None else 0
        if self.cx > rowlen:
            self.cx = rowlen

    def move_home(self) -> None:
        self.cx = 0

    def move_end(self) -> None:
        row = self.current_row
        if row is not None:
            self.cx = row.size

    def page_up(self) -> None:
        self.cy = self.rowoff
        for _ in range(self.screenrows):
            self.move_cursor(ARROW_UP)

    def page_down(self) -> None:
        self.cy = min(self.rowoff + self.screenrows - 1, self.numrows)
        for _ in range(self.screenrows):
            self.move_cursor(ARROW_DOWN)

    def scroll(self) -> None:
        row = self.current_row
        self.rx = cx_to_rx(row, self.cx, self.tab_stop) if row is not None else 0

        if self.cy < self.rowoff:
            self.rowoff = self.cy
        if self.cy >= self.rowoff + self.screenrows:
            self.rowoff = self.cy - self.screenrows + 1
        if self.rx < self.coloff:
            self.coloff = self.rx
        if self.rx >= self.coloff + self.screencols:
            self.coloff = self.rx - self.screencols + 1

    # Persistence.

    def serialize(self) -> bytes:
        # One code point per byte, see open().
        return "".join(f"{row.chars}\n" for row in self.rows).encode("latin-1")

    def open(self, filename: str) -> bool:
        """Load ``filename``; a missing file starts a new named document.

        Returns ``False`` when the file exists but could not be read; the
        reason is left in the status message.
        """
        self.filename = filename
        self.select_syntax(filename)
        ok = True
        try:
            with open(filename, "rb") as f:
                for line in f:
                    self.insert_row(self.numrows, line.rstrip(b"\r\n").decode("latin-1"))
        except FileNotFoundError:
            logger.info("%s does not exist, starting a new file", filename)
        except OSError as exc:
            logger.warning("opening %s failed: %s", filename, exc)
            self.set_status_message("Can't open %s: %s", filename, exc.strerror or exc)
            ok = False
        else:
            logger.info("loaded %s (%d rows)", filename, self.numrows)
        self.dirty = 0
        return ok

    def save(self) -> bool:
        if not self.filename:
            self.set_status_message("Can't save! No filename.")
            return False

        data = self.serialize()
        directory = os.path.dirname(os.path.abspath(self.filename))
        try:
            fd, tmp = tempfile.mkstemp(prefix=".kiln-", dir=directory)
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.chmod(tmp, _target_mode(self.filename))
                os.replace(tmp, self.filename)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(tmp)
                raise
        except OSError as exc:
            logger.error("saving %s failed: %s", self.filename, exc)
            self.set_status_message("Can't save! I/O error: %s", exc.strerror or exc)
            return False

        self.dirty = 0
        logger.info("wrote %d bytes to %s", len(data), self.filename)
        self.set_status_message("%d bytes written to disk", len(data))
        return True


def _target_mode(filename: str) -> int:
    try:
        return os.stat(filename).st_mode & 0o7777
    except FileNotFoundError:
        return 0o644
