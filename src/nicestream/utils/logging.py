"""Package logger helpers.

Library modules only call ``get_logger(__name__)``. The demo app and scripts
call ``configure_logging()`` to send ``nicestream`` records to stderr; the
root logger is never touched.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

ROOT_LOGGER_NAME = "nicestream"

DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    if level is None:
        level = os.environ.get("NICESTREAM_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _writes_to_stderr(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and handler.stream is sys.stderr


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """Attach one stderr handler to the ``nicestream`` logger.

    ``level`` defaults to $NICESTREAM_LOG_LEVEL, then INFO. Without ``force`` an
    existing stderr handler is left as is; with it, all handlers are replaced.
    """
    logger = get_logger()
    logger.setLevel(_resolve_level(level))

    if force:
        for h in list(logger.handlers):
            h.close()
            logger.removeHandler(h)
    elif any(_writes_to_stderr(h) for h in logger.handlers):
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logger.level)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FMT, datefmt or DEFAULT_DATEFMT))
    logger.addHandler(handler)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Named logger; the package logger when ``name`` is None."""
    if name is None:
        name = ROOT_LOGGER_NAME
    return logging.getLogger(name)
