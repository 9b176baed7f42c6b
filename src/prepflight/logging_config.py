"""Logging configuration for the analytics engine."""
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from prepflight.config import settings

# Chatty client libraries pulled in by firebase-admin and SQLAlchemy
QUIET_LOGGERS = (
    "google",
    "google.auth",
    "urllib3",
    "grpc",
    "sqlalchemy.engine",
)


def setup_logging(level: Optional[Union[int, str]] = None, log_dir: Optional[str] = None) -> None:
    """Set up logging configuration.

    Args:
        level: Optional logging level. If None, uses LOG_LEVEL.
        log_dir: Optional directory for a rotating log file. If None, uses LOG_DIR;
            when both are unset only the console handler is installed.
    """
    if level is None:
        level = settings.logging.level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    formatter = logging.Formatter(settings.logging.format)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove any existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_dir = log_dir if log_dir is not None else settings.logging.dir
    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        log_file = directory / "prepflight.log"
        file_handler = TimedRotatingFileHandler(
            log_file,
            when=settings.logging.rotation,
            interval=settings.logging.interval,
            backupCount=settings.logging.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        root_logger.info(f"Log file: {log_file} (rotation: {settings.logging.rotation})")

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(f"Logging configured with level: {logging.getLevelName(level)}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)
