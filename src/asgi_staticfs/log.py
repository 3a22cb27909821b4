# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Debug logger capability for the static middleware.

The middleware only needs one operation: a format string plus ordered
arguments. Any ``logging.Logger`` (or structlog/loguru adapter exposing
``debug``) satisfies DebugLogger, so applications can hand in their own.

When debugging is enabled without a logger, default_logger() builds one
writing to standard output::

    DEBUG: 2025/01/31 10:15:02 Serving static file: /static/site.css
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Protocol, runtime_checkable

__all__ = ["DebugLogger", "default_logger", "DEFAULT_LOGGER_NAME"]

DEFAULT_LOGGER_NAME = "asgi_staticfs.static"


@runtime_checkable
class DebugLogger(Protocol):
    """Anything with a logging-style debug(msg, *args) method."""

    def debug(self, msg: str, *args: Any) -> None: ...


def default_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """Create a standalone logger writing debug lines to stdout.

    The logger is not registered with logging.getLogger(), so each call
    returns a new instance owned by the caller and does not propagate to
    the root logger.
    """
    logger = logging.Logger(name, level=logging.DEBUG)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("DEBUG: %(asctime)s %(message)s", datefmt="%Y/%m/%d %H:%M:%S")
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
