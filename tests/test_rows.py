from __future__ import annotations

import pytest

from kiln.models import Row
from kiln.rows import cx_to_rx, rx_to_cx, update_render


def rendered(chars: str, tab_stop: int = 8) -> Row:
    row = Row(idx=0, chars=chars)
    update_render(row, tab_stop)
    return row


def test_tab_expands_to_next_stop() -> None:
    row = rendered("a\tb")
    assert row.render == "a" + " " * 7 + "b"
    assert row.rsize == 9
    assert [cx_to_rx(row, x) for x in (0, 1, 2)] == [0, 1, 8]


@pytest.mark.parametrize(
    "chars",
    ["", "plain", "\t", "\t\t", "ab\tc\td", "12345678\tx", "\tint main() {\t}"],
)
def test_render_length_and_round_trip(chars: str) -> None:
    row = rendered(chars)
    assert row.rsize == len(row.render)
    assert row.rsize >= row.size
    for x in range(row.size + 1):
        assert rx_to_cx(row, cx_to_rx(row, x)) == x


def test_leading_tabs_add_seven_columns_each() -> None:
    row = rendered("\t\tx")
    assert row.rsize == row.size + 7 * 2


def test_columns_inside_tab_map_to_the_tab() -> None:
    row = rendered("a\tb")
    for rx in range(1, 8):
        assert rx_to_cx(row, rx) == 1
    assert rx_to_cx(row, 8) == 2
    assert rx_to_cx(row, 50) == row.size


def test_custom_tab_stop() -> None:
    row = rendered("\tx", tab_stop=4)
    assert row.render == "    x"
    assert cx_to_rx(row, 1, 4) == 4
