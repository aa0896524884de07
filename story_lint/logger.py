# === FILE: story_lint/logger.py ===
"""Logging setup for **StoryLint**.

One named logger, ``StoryLint``, is shared by every module::

    from story_lint.logger import logger
    logger.info("Linting %s", url)

Log records go to stderr (stdout carries the report) and, optionally, to a
rotating file. The CLI calls :func:`init_logging` with the user's options;
importing the package leaves the logger at WARNING without touching disk.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterator, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "StoryLint"
_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _handlers(log_file: Path | str | None) -> Iterator[logging.Handler]:
    yield logging.StreamHandler(sys.stderr)
    if log_file is not None:
        yield RotatingFileHandler(
            filename=str(log_file),
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``StoryLint`` logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Rotating log file in addition to stderr; *None* → stderr only.
    log_format
        Format string shared by all handlers.
    replace_handlers
        Close and drop previously attached handlers first.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for old in list(lg.handlers):
            lg.removeHandler(old)
            old.close()

    formatter = logging.Formatter(log_format)
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        lg.addHandler(handler)

    # records stay out of the root logger
    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "WARNING", log_file: str | Path | None = None, log_format: str = _DEFAULT_FORMAT
) -> logging.Logger:
    """Entry point for the CLI; replaces whatever was configured before."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging"]
