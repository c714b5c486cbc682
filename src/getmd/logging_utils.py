"""Logging setup for the getmd command line and HTTP endpoint.

Library modules only create module loggers; handlers are installed here by
the entry points. The HTTP client stack (``httpx``/``httpcore``) logs every
request at INFO, which drowns out getmd's own messages, so those loggers are
held at WARNING unless trace mode is on.
"""

#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/getmd/logging_utils.py

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

NOISY_LOGGERS = ("httpx", "httpcore")

TRACE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] [%(threadName)s] %(message)s"
DEFAULT_FORMAT = "%(levelname)s: %(message)s"


def _resolve_level(log_level: int | str) -> int:
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Install root handlers for a getmd process.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or level name (e.g., "INFO").
    log_file : str, optional
        Also append log records to this file.
    trace_mode : bool, default False
        Include timestamps, logger and thread names (server requests run on
        worker threads), and let HTTP client debug output through.
    stream : TextIO, optional
        Console stream; defaults to stderr so stdout stays clean for Markdown.

    Returns
    -------
    logging.Logger
        The configured root logger.

    """
    resolved_level = _resolve_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(
        TRACE_FORMAT if trace_mode else DEFAULT_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S" if trace_mode else None,
    )

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(resolved_level if trace_mode else max(resolved_level, logging.WARNING))

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root_logger.warning("Could not open log file %s: %s", log_file, exc)
        else:
            file_handler.setLevel(resolved_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.debug("Logging to file: %s", log_file)

    return root_logger
