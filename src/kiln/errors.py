from __future__ import annotations


class KilnError(Exception):
    """Base class for editor errors."""


class OutOfRange(KilnError, IndexError):
    """A row index outside the document was requested."""

    def __init__(self, index: int, numrows: int) -> None:
        super().__init__(f"row index {index} not in [0, {numrows}]")
        self.index = index
        self.numrows = numrows


class TerminalError(KilnError, OSError):
    """Terminal setup or raw I/O failed; the editor cannot continue."""
