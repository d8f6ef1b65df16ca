"""Logging configuration for tasktracker.

The library itself only creates module loggers; handlers are attached here,
by the CLI, and only on request.
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_quiet_mode() -> None:
    """Keep third-party chatter (LiteLLM, httpx) at warning level or above."""
    for name in ("LiteLLM", "litellm", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def enable_debug_mode() -> None:
    """Enable debug-level tasktracker logging to stderr."""
    logger = logging.getLogger("tasktracker")
    logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(handler)
