"""Environment-driven settings for the Zertz engine and its HTTP adapter.

Flags are read once at import time:

- ``ZERTZ_DEFAULT_BOARD_SIZE``: board used when callers do not pick one
  (37, 48 or 61; default 37).
- ``ZERTZ_ENFORCE_FULL_CAPTURE``: when on (the default), the unified
  ``GameEngine.apply_move`` rejects capture chains that stop before the
  chain is exhausted.
- ``ZERTZ_LOG_LEVEL``: logging level for the HTTP adapter (default INFO).
"""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

SUPPORTED_BOARD_SIZES = (37, 48, 61)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def parse_bool(name: str, raw: str | None, default: bool) -> bool:
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigurationError(
        f"Expected a boolean flag, got {raw!r}", setting=name
    )


def parse_board_size(name: str, raw: str | None, default: int = 37) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        size = int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Board size must be an integer, got {raw!r}", setting=name
        ) from e
    if size not in SUPPORTED_BOARD_SIZES:
        raise ConfigurationError(
            f"Unsupported board size {size}; use 37, 48 or 61",
            setting=name,
        )
    return size


def parse_log_level(name: str, raw: str | None, default: str = "INFO") -> int:
    level_name = (raw or default).strip().upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ConfigurationError(
            f"Unknown log level {raw!r}", setting=name
        )
    return level


DEFAULT_BOARD_SIZE = parse_board_size(
    "ZERTZ_DEFAULT_BOARD_SIZE", os.getenv("ZERTZ_DEFAULT_BOARD_SIZE")
)
ENFORCE_FULL_CAPTURE = parse_bool(
    "ZERTZ_ENFORCE_FULL_CAPTURE",
    os.getenv("ZERTZ_ENFORCE_FULL_CAPTURE"),
    default=True,
)
LOG_LEVEL = parse_log_level("ZERTZ_LOG_LEVEL", os.getenv("ZERTZ_LOG_LEVEL"))
