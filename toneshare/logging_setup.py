"""Logging configuration for toneshare processes."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Chatty third-party loggers: WARNING and up unless we are debugging.
NOISY_LOGGERS = ("werkzeug", "claude_agent_sdk")


def _resolve(name: str) -> Optional[int]:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else None


def configure_logging(default_level: str = "WARNING",
                      override: Optional[str] = None) -> int:
    """Configure root logging and return the level in effect.

    Precedence: ``override`` (the --log-level flag), then ``LOG_LEVEL``,
    then ``default_level``.  An unknown name falls back to the default and
    is reported once the handler is installed.
    """
    requested = override or os.environ.get("LOG_LEVEL") or default_level
    level = _resolve(requested)
    rejected = None
    if level is None:
        rejected = requested
        level = _resolve(default_level) or logging.WARNING

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(
            level if level <= logging.DEBUG else max(level, logging.WARNING))

    if rejected is not None:
        logging.getLogger(__name__).warning(
            "Invalid log level '%s'; using %s", rejected, logging.getLevelName(level))

    return level
