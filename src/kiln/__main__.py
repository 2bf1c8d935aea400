from __future__ import annotations

from .editor import run

if __name__ == "__main__":
    raise SystemExit(run())
