from __future__ import annotations

from .constants import KILN_VERSION

__version__ = KILN_VERSION
