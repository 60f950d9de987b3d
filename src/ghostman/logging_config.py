"""
Logging configuration for Ghostman.

Console output goes to stderr so it never interleaves with the request and
response trees printed on stdout.
"""

import logging
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "ghostman"

CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)-24s | %(funcName)-20s | %(lineno)-4d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    max_bytes: int = 10485760,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """
    Set up the package logger.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Also write logs to this file, rotated at ``max_bytes``
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated files to keep

    Returns:
        Configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    logger.addHandler(_console_handler(logger.level))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(file_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def configure_logging(debug: bool = False, log_file: str | None = None) -> logging.Logger:
    """Quick logging configuration: WARNING, or DEBUG with ``debug``."""
    return setup_logging(level="DEBUG" if debug else "WARNING", log_file=log_file)


def enable_debug() -> logging.Logger:
    """Raise the package logger to DEBUG, keeping its handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        return configure_logging(debug=True)
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers:
        handler.setLevel(logging.DEBUG)
    return logger
