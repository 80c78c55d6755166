"""
Logging setup for the command-line entry point.

Library modules only create module-level loggers; handlers are installed here
once, by the application.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
LOG_FILENAME = "titleseed.log"

_HANDLER_MARK = "_titleseed_handler"


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    *,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """Configures the ``titleseed`` logger.

    Existing handlers installed by a previous call are replaced, so calling
    this repeatedly does not duplicate output.

    Args:
        log_level: Level name such as ``"DEBUG"`` or ``"INFO"``.
        log_dir: Directory for the rotating log file; no file when None.
        console: Whether to also log to stderr.
        max_bytes: Size at which the log file rotates.
        backup_count: Number of rotated files to keep.

    Returns:
        logging.Logger: The configured package logger.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logger = logging.getLogger("titleseed")
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
            handler.close()

    if console:
        stream = logging.StreamHandler()
        stream.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        stream.setLevel(level)
        setattr(stream, _HANDLER_MARK, True)
        logger.addHandler(stream)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_dir / LOG_FILENAME,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        setattr(file_handler, _HANDLER_MARK, True)
        logger.addHandler(file_handler)

    return logger
