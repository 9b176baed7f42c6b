"""Tests for logging setup."""
import logging
from logging.handlers import TimedRotatingFileHandler

import pytest

from prepflight.logging_config import get_logger, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_console_only(restore_root_logger) -> None:
    setup_logging("WARNING")

    assert restore_root_logger.level == logging.WARNING
    assert len(restore_root_logger.handlers) == 1
    assert logging.getLogger("google").level == logging.WARNING


def test_file_handler(restore_root_logger, tmp_path) -> None:
    setup_logging(logging.DEBUG, log_dir=str(tmp_path / "logs"))

    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, TimedRotatingFileHandler)]
    assert len(file_handlers) == 1
    assert (tmp_path / "logs" / "prepflight.log").exists()


def test_setup_is_repeatable(restore_root_logger) -> None:
    setup_logging("INFO")
    setup_logging("INFO")
    assert len(restore_root_logger.handlers) == 1


def test_get_logger() -> None:
    assert get_logger("prepflight.x").name == "prepflight.x"
