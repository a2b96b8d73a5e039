"""Tests for logging setup."""

import json
import logging

import pytest

from core.logging.context import clear_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import (
    NOISY_LOGGERS,
    ArchivingTimedRotatingFileHandler,
    get_log_file_path,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers:
        if handler not in saved_handlers:
            handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    clear_log_context()


class TestGetLogFilePath:
    def test_structure_with_stage(self, tmp_path):
        path = get_log_file_path(tmp_path, stage="bridge", instance_id="3")

        assert path.parent.parent == tmp_path
        assert path.name.startswith("bridge_bridge_")
        assert path.name.endswith("_3.log")

    def test_instance_ids_increment(self, tmp_path):
        first = get_log_file_path(tmp_path)
        second = get_log_file_path(tmp_path)
        assert first != second


class TestSetupLogging:
    def test_file_and_console_handlers(self, tmp_path):
        setup_logging(name="forum_bridge", stage="bridge", log_dir=tmp_path)

        handlers = logging.getLogger().handlers
        assert any(isinstance(h, ArchivingTimedRotatingFileHandler) for h in handlers)
        assert any(isinstance(h.formatter, ConsoleFormatter) for h in handlers)

    def test_file_handler_writes_json(self, tmp_path):
        logger = setup_logging(name="forum_bridge", stage="bridge", log_dir=tmp_path)
        logger.info("hello", extra={"topic": "nodebb-posts"})

        file_handler = next(
            h for h in logging.getLogger().handlers if isinstance(h, ArchivingTimedRotatingFileHandler)
        )
        file_handler.flush()
        assert isinstance(file_handler.formatter, JSONFormatter)

        line = open(file_handler.baseFilename, encoding="utf-8").read().strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["message"] == "hello"
        assert entry["topic"] == "nodebb-posts"
        assert entry["stage"] == "bridge"

    def test_stdout_mode_has_no_file_handler(self, tmp_path):
        setup_logging(log_dir=tmp_path, log_to_stdout=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert not isinstance(handlers[0], ArchivingTimedRotatingFileHandler)
        assert not any(tmp_path.iterdir())

    def test_noisy_loggers_suppressed(self, tmp_path):
        setup_logging(log_dir=tmp_path, log_to_stdout=True)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING
