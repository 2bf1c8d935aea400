"""Configuration loading.

Built-in defaults are merged with the user's ``config.toml``, looked up at
``$KILN_CONFIG`` or ``~/.config/kiln/config.toml``. A missing or broken user
file never stops the editor from starting; the defaults are used instead.

Recognised keys::

    [editor]
    tab_stop = 8
    quit_times = 2
    message_timeout = 5

    [logging]
    file = ""            # empty: <tempdir>/kiln.log
    file_level = "INFO"
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml

from .constants import KILN_MESSAGE_TIMEOUT, KILN_QUIT_TIMES, KILN_TAB_STOP

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: dict[str, Any] = {
    "editor": {
        "tab_stop": KILN_TAB_STOP,
        "quit_times": KILN_QUIT_TIMES,
        "message_timeout": KILN_MESSAGE_TIMEOUT,
    },
    "logging": {
        "file": "",
        "file_level": "INFO",
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def user_config_path() -> Path:
    env = os.environ.get("KILN_CONFIG")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "kiln" / "config.toml"


def load_config(path: Path | None = None) -> dict[str, Any]:
    config = deep_merge({}, DEFAULT_CONFIG)
    path = user_config_path() if path is None else path
    if not path.is_file():
        return config
    try:
        config = deep_merge(config, toml.load(path))
    except (OSError, toml.TomlDecodeError) as exc:
        logger.error("could not parse config %s: %s; using defaults", path, exc)
        return config
    logger.info("loaded config from %s", path)
    return config


def editor_setting(config: dict[str, Any], key: str) -> int:
    """Positive integer from ``[editor]``, falling back to the default."""
    value = config.get("editor", {}).get(key)
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    if value is not None:
        logger.warning("ignoring invalid editor.%s = %r", key, value)
    return DEFAULT_CONFIG["editor"][key]
