from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .constants import (
    C_HL_EXTENSIONS,
    C_HL_KEYWORDS,
    HL_COMMENT,
    HL_HIGHLIGHT_NUMBERS,
    HL_HIGHLIGHT_STRINGS,
    HL_KEYWORD1,
    HL_KEYWORD2,
    HL_MATCH,
    HL_MLCOMMENT,
    HL_NORMAL,
    HL_NUMBER,
    HL_STRING,
    PY_HL_EXTENSIONS,
    PY_HL_KEYWORDS,
    SEPARATORS,
)
from .models import Row, SyntaxDef

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


HLDB: tuple[SyntaxDef, ...] = (
    SyntaxDef(
        filetype="c",
        filematch=C_HL_EXTENSIONS,
        keywords=C_HL_KEYWORDS,
        singleline_comment_start="//",
        multiline_comment_start="/*",
        multiline_comment_end="*/",
        flags=HL_HIGHLIGHT_STRINGS | HL_HIGHLIGHT_NUMBERS,
    ),
    SyntaxDef(
        filetype="python",
        filematch=PY_HL_EXTENSIONS,
        keywords=PY_HL_KEYWORDS,
        singleline_comment_start="#",
        multiline_comment_start='"""',
        multiline_comment_end='"""',
        flags=HL_HIGHLIGHT_STRINGS | HL_HIGHLIGHT_NUMBERS,
    ),
)

_WHITESPACE = " \t\n\r\x0b\x0c\0"


def is_separator(c: str) -> bool:
    return not c or c in _WHITESPACE or c in SEPARATORS


def is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def syntax_to_color(hl: int) -> int:
    if hl in (HL_COMMENT, HL_MLCOMMENT):
        return 36
    if hl == HL_KEYWORD1:
        return 33
    if hl == HL_KEYWORD2:
        return 32
    if hl == HL_STRING:
        return 35
    if hl == HL_NUMBER:
        return 31
    if hl == HL_MATCH:
        return 34
    return 37


def select_syntax(filename: str | None) -> SyntaxDef | None:
    if not filename:
        return None
    for syntax in HLDB:
        for pattern in syntax.filematch:
            if pattern.startswith("."):
                if filename.endswith(pattern):
                    return syntax
            elif pattern in filename:
                return syntax
    return None


def match_keyword(text: str, i: int, keywords: tuple[str, ...]) -> tuple[int, int] | None:
    """Longest keyword at ``text[i:]`` followed by a separator or end of text.

    Returns ``(length, hl)`` or ``None``. Keywords ending in ``|`` are
    secondary.
    """
    best: tuple[int, int] | None = None
    for kw in keywords:
        secondary = kw.endswith("|")
        token = kw[:-1] if secondary else kw
        klen = len(token)
        if best is not None and klen <= best[0]:
            continue
        if not text.startswith(token, i):
            continue
        tail = text[i + klen] if i + klen < len(text) else ""
        if is_separator(tail):
            best = (klen, HL_KEYWORD2 if secondary else HL_KEYWORD1)
    return best


def highlight_row(row: Row, syntax: SyntaxDef | None, in_comment: bool) -> bool:
    """Classify every rendered byte of ``row``.

    ``in_comment`` is the open block comment carried in from the previous
    row. Returns whether the row ends inside a block comment.
    """
    row.hl = [HL_NORMAL] * row.rsize
    if syntax is None:
        return False

    scs = syntax.singleline_comment_start
    mcs = syntax.multiline_comment_start
    mce = syntax.multiline_comment_end
    p = row.render
    n = len(p)

    prev_sep = True
    in_string = ""
    i = 0
    while i < n:
        ch = p[i]
        prev_hl = row.hl[i - 1] if i > 0 else HL_NORMAL

        if scs and not in_string and not in_comment and p.startswith(scs, i):
            row.hl[i:] = [HL_COMMENT] * (n - i)
            break

        if mcs and mce and not in_string:
            if in_comment:
                row.hl[i] = HL_MLCOMMENT
                if p.startswith(mce, i):
                    row.hl[i : i + len(mce)] = [HL_MLCOMMENT] * len(mce)
                    i += len(mce)
                    in_comment = False
                    prev_sep = True
                    continue
                i += 1
                continue
            if p.startswith(mcs, i):
                row.hl[i : i + len(mcs)] = [HL_MLCOMMENT] * len(mcs)
                i += len(mcs)
                in_comment = True
                continue

        if syntax.flags & HL_HIGHLIGHT_STRINGS:
            if in_string:
                row.hl[i] = HL_STRING
                if ch == "\\" and i + 1 < n:
                    row.hl[i + 1] = HL_STRING
                    i += 2
                    continue
                if ch == in_string:
                    in_string = ""
                i += 1
                prev_sep = True
                continue
            if ch in ('"', "'"):
                in_string = ch
                row.hl[i] = HL_STRING
                i += 1
                continue

        if syntax.flags & HL_HIGHLIGHT_NUMBERS:
            if (is_digit(ch) and (prev_sep or prev_hl == HL_NUMBER)) or (
                ch == "." and prev_hl == HL_NUMBER
            ):
                row.hl[i] = HL_NUMBER
                i += 1
                prev_sep = False
                continue

        if prev_sep:
            found = match_keyword(p, i, syntax.keywords)
            if found is not None:
                klen, mark = found
                row.hl[i : i + klen] = [mark] * klen
                i += klen
                prev_sep = False
                continue

        prev_sep = is_separator(ch)
        i += 1

    return in_comment


def update_syntax(doc: Document, idx: int) -> int:
    """Re-highlight row ``idx`` and cascade forward while the carried
    block-comment state keeps changing.

    Returns the number of rows classified.
    """
    count = 0
    while idx < doc.numrows:
        row = doc.rows[idx]
        carried = idx > 0 and doc.rows[idx - 1].hl_open_comment
        open_comment = highlight_row(row, doc.syntax, carried)
        count += 1
        if row.hl_open_comment == open_comment:
            break
        row.hl_open_comment = open_comment
        idx += 1
    if count > 1:
        logger.debug("re-highlight cascaded over %d rows", count)
    return count


def highlight_all(doc: Document) -> None:
    carried = False
    for row in doc.rows:
        row.hl_open_comment = highlight_row(row, doc.syntax, carried)
        carried = row.hl_open_comment
