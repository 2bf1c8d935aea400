"""Logging setup.

The terminal belongs to the editor while it runs, so records only ever go
to files: a rotating ``kiln.log`` for the application, and, when
``KILN_KEYTRACE`` is set to ``1``/``true``/``yes``, a rotating
``keytrace.log`` fed by the ``kiln.keyevents`` logger.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
import tempfile
from typing import Any

logger = logging.getLogger("kiln")
KEY_LOGGER = logging.getLogger("kiln.keyevents")

FILE_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)-15s - %(message)s (%(filename)s:%(lineno)d)"


def default_log_path() -> str:
    return os.path.join(tempfile.gettempdir(), "kiln.log")


def _rotating_handler(path: str, max_bytes: int, backups: int) -> logging.Handler | None:
    log_dir = os.path.dirname(path)
    try:
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        return logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
        )
    except OSError as exc:
        print(f"kiln: cannot open log file '{path}': {exc}", file=sys.stderr)
        return None


def setup_logging(config: dict[str, Any] | None = None) -> None:
    """Replace the root handlers with the configured file handlers.

    Safe to call more than once. Never raises; a log file that cannot be
    opened is reported on stderr and skipped.
    """
    logging_config = (config or {}).get("logging", {})
    log_path = logging_config.get("file") or default_log_path()
    level_name = str(logging_config.get("file_level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.handlers = []
    root.setLevel(level)

    file_handler = _rotating_handler(log_path, 2 * 1024 * 1024, 5)
    if file_handler is not None:
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(level)
        root.addHandler(file_handler)
    else:
        root.addHandler(logging.NullHandler())

    KEY_LOGGER.propagate = False
    KEY_LOGGER.setLevel(logging.DEBUG)
    KEY_LOGGER.handlers = []
    KEY_LOGGER.disabled = True
    if os.environ.get("KILN_KEYTRACE", "").lower() in {"1", "true", "yes"}:
        trace_path = os.path.join(os.path.dirname(log_path), "keytrace.log")
        trace_handler = _rotating_handler(trace_path, 1024 * 1024, 3)
        if trace_handler is not None:
            trace_handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s"))
            KEY_LOGGER.addHandler(trace_handler)
            KEY_LOGGER.disabled = False
            logger.info("key tracing to %s", trace_path)
    if KEY_LOGGER.disabled:
        KEY_LOGGER.addHandler(logging.NullHandler())

    logger.info("logging to %s at %s", log_path, logging.getLevelName(level))
