# log.py
# SPDX-License-Identifier: MIT
"""Package logging helpers.

Library modules log through ``get_logger(__name__)`` and never install
handlers themselves; the package logger only carries a NullHandler until an
application (or the CLI) calls :func:`configure_logging`.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterator

__all__ = [
    "PACKAGE_LOGGER_NAME",
    "DEFAULT_FORMAT",
    "get_logger",
    "configure_logging",
    "temp_level",
]

PACKAGE_LOGGER_NAME = "batchflow"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Marks the console handler owned by configure_logging.
_HANDLER_TAG = "_batchflow_console"

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level {level!r}")
    return resolved


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``name``'s logger, or the package logger when omitted."""
    return logging.getLogger(name or PACKAGE_LOGGER_NAME)


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: IO[str] | None = None,
    fmt: str | None = None,
    datefmt: str | None = None,
    propagate: bool | None = None,
    logger_name: str = PACKAGE_LOGGER_NAME,
) -> logging.Logger:
    """Attach (or refresh) a console handler on a batchflow logger.

    Repeated calls reuse the handler installed by the first one, pointing it
    at the new stream and format, so the CLI can be invoked many times in one
    process without duplicating output.

    Args:
        level (int | str): Logging level or level name.
        stream (IO[str] | None): Target stream; defaults to sys.stderr.
        fmt (str | None): Log format; defaults to :data:`DEFAULT_FORMAT`.
        datefmt (str | None): Date format for the handler.
        propagate (bool | None): Whether records bubble up to ancestor
            loggers. None leaves propagation on so root handlers (pytest's
            caplog, for one) still see job output.
        logger_name (str): Logger to configure.

    Returns:
        logging.Logger: The configured logger.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    logger = get_logger(logger_name or PACKAGE_LOGGER_NAME)
    logger.setLevel(_coerce_level(level))
    logger.propagate = True if propagate is None else bool(propagate)

    target = stream if stream is not None else sys.stderr
    formatter = logging.Formatter(fmt=fmt or DEFAULT_FORMAT, datefmt=datefmt)
    handler = next((h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)), None)
    if handler is None:
        handler = logging.StreamHandler(target)
        setattr(handler, _HANDLER_TAG, True)
        logger.addHandler(handler)
    elif handler.stream is not target:
        handler.setStream(target)
    handler.setFormatter(formatter)
    return logger


@contextmanager
def temp_level(level: int | str, name: str | None = None) -> Iterator[logging.Logger]:
    """Set a logger's level for the duration of a ``with`` block."""
    logger = get_logger(name)
    previous = logger.level
    logger.setLevel(_coerce_level(level))
    try:
        yield logger
    finally:
        logger.setLevel(previous)
