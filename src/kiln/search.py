"""Incremental search driven from the prompt callback."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import (
    ARROW_DOWN,
    ARROW_LEFT,
    ARROW_RIGHT,
    ARROW_UP,
    ENTER,
    ESC,
    HL_MATCH,
)
from .document import Document
from .rows import rx_to_cx

logger = logging.getLogger(__name__)


@dataclass
class SearchSnapshot:
    cx: int
    cy: int
    coloff: int
    rowoff: int


class SearchSession:
    """State for one find prompt.

    Only one row carries the match overlay at a time; its original highlight
    is kept in ``saved_hl`` and put back before the next search step or when
    the prompt closes.
    """

    def __init__(self, doc: Document) -> None:
        self.doc = doc
        self.last_match = -1
        self.direction = 1
        self.saved_hl_line = -1
        self.saved_hl: list[int] | None = None
        self.snapshot = SearchSnapshot(doc.cx, doc.cy, doc.coloff, doc.rowoff)

    def restore_highlight(self) -> None:
        if self.saved_hl is not None and 0 <= self.saved_hl_line < self.doc.numrows:
            self.doc.rows[self.saved_hl_line].hl = self.saved_hl
        self.saved_hl = None
        self.saved_hl_line = -1

    def restore_cursor(self) -> None:
        doc = self.doc
        doc.cx = self.snapshot.cx
        doc.cy = self.snapshot.cy
        doc.coloff = self.snapshot.coloff
        doc.rowoff = self.snapshot.rowoff

    def on_key(self, query: str, key: int) -> None:
        self.restore_highlight()

        if key in (ENTER, ESC):
            self.last_match = -1
            self.direction = 1
            return
        if key in (ARROW_RIGHT, ARROW_DOWN):
            self.direction = 1
        elif key in (ARROW_LEFT, ARROW_UP):
            self.direction = -1
        else:
            self.last_match = -1
            self.direction = 1

        if not query:
            return
        found = self.find_next(query)
        if found is None:
            logger.debug("no match for %r", query)
            return
        self.jump_to(*found, length=len(query))

    def find_next(self, query: str) -> tuple[int, int] | None:
        """Scan at most one full lap from ``last_match`` in ``direction``."""
        doc = self.doc
        if self.last_match == -1:
            self.direction = 1
        current = self.last_match
        for _ in range(doc.numrows):
            current += self.direction
            if current == -1:
                current = doc.numrows - 1
            elif current == doc.numrows:
                current = 0
            offset = doc.rows[current].render.find(query)
            if offset != -1:
                return current, offset
        return None

    def jump_to(self, row_idx: int, offset: int, length: int) -> None:
        doc = self.doc
        row = doc.rows[row_idx]
        self.last_match = row_idx
        doc.cy = row_idx
        doc.cx = rx_to_cx(row, offset, doc.tab_stop)
        doc.rowoff = max(0, row_idx - doc.screenrows // 2)

        self.saved_hl_line = row_idx
        self.saved_hl = row.hl.copy()
        end = min(offset + length, row.rsize)
        row.hl[offset:end] = [HL_MATCH] * (end - offset)
