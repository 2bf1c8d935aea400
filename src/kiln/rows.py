"""Per-row render cache: tab expansion and char/render column mapping."""

from __future__ import annotations

from .constants import KILN_TAB_STOP
from .models import Row


def update_render(row: Row, tab_stop: int = KILN_TAB_STOP) -> None:
    out: list[str] = []
    idx = 0
    for ch in row.chars:
        if ch == "\t":
            out.append(" ")
            idx += 1
            while idx % tab_stop != 0:
                out.append(" ")
                idx += 1
        else:
            out.append(ch)
            idx += 1
    row.render = "".join(out)


def cx_to_rx(row: Row, cx: int, tab_stop: int = KILN_TAB_STOP) -> int:
    rx = 0
    for ch in row.chars[:cx]:
        if ch == "\t":
            rx += (tab_stop - 1) - (rx % tab_stop)
        rx += 1
    return rx


def rx_to_cx(row: Row, rx: int, tab_stop: int = KILN_TAB_STOP) -> int:
    """Return the char index whose expansion covers render column ``rx``.

    Columns inside a tab map back to the tab itself. Columns past the end of
    the row map to ``row.size``.
    """
    cur_rx = 0
    for cx, ch in enumerate(row.chars):
        if ch == "\t":
            cur_rx += (tab_stop - 1) - (cur_rx % tab_stop)
        cur_rx += 1
        if cur_rx > rx:
            return cx
    return row.size
