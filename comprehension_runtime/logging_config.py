"""Logging setup for the comprehension compiler and runtime.

All loggers live under the ``comprehension`` namespace; the CLI and MCP
server call ``configure_logging()`` once to send them to stderr.
"""

import logging
import sys

from comprehension_runtime.config import get_config

ROOT_LOGGER = "comprehension"

_FORMAT = "[comprehension] %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger nested under the ``comprehension`` namespace."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stderr handler to the ``comprehension`` logger.

    *level* falls back to ``logging.level`` from comprehension.config.
    Calling this again only updates the level.
    """
    if level is None:
        level = get_config()["logging"]["level"]
    if isinstance(level, str):
        level = level.upper()

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    if not any(getattr(h, "_comprehension_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._comprehension_handler = True
        logger.addHandler(handler)

    return logger
