#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/diffviz/logging_utils.py
"""Logging setup for the diffviz tool server.

stdout carries the MCP stdio transport, so every record goes to stderr.
"""

from __future__ import annotations

import logging
import sys

SERVER_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
SERVER_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client libraries log every request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def resolve_level(log_level: int | str) -> int:
    """Turn a level name such as ``"debug"`` into its numeric value, defaulting to INFO."""
    if isinstance(log_level, int):
        return log_level
    resolved = logging.getLevelName(str(log_level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(log_level: int | str) -> logging.Logger:
    """Route root logging to a single stderr handler.

    Calling this again replaces the handler, so the server can start at
    INFO and switch to the configured level once configuration loads.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name

    Returns
    -------
    logging.Logger
        The configured root logger

    """
    level = resolve_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(SERVER_LOG_FORMAT, datefmt=SERVER_DATE_FORMAT))
    root_logger.addHandler(handler)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root_logger
