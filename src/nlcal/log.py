"""Logging setup for nlcal.

One stderr handler on the root logger, ISO 8601 timestamps and
pipe-separated fields, shared by the CLI and the HTTP server.
"""

from __future__ import annotations

import logging
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Marks the handler we own so repeated setup calls can find it again.
_HANDLER_ATTR = "_nlcal_log_handler"

# Libraries that are chatty at INFO/DEBUG; held at WARNING unless the
# caller asks for DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore", "googleapiclient.discovery_cache")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with the nlcal formatter.

    Safe to call more than once: the existing handler is reused and only
    its level is updated.

    Args:
        level: A standard logging level name (e.g. ``"DEBUG"``, ``"INFO"``).

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    for handler in root.handlers:
        if getattr(handler, _HANDLER_ATTR, False):
            handler.setLevel(numeric_level)
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)
