"""Тесты QuickRequestLogger и обработчиков."""

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from quickrequest.core.logging import LoggingConfig, QuickRequestLogger
from quickrequest.core.logging.handlers import create_console_handler, create_file_handler
from quickrequest.core.logging.formatters import TextFormatter


def test_console_handler_by_default(logging_config):
    logger = QuickRequestLogger(logging_config, name="quickrequest.test.console")
    try:
        assert len(logger.logger.handlers) == 1
        assert logger.logger.propagate is False
        assert logger.logger.level == logging.DEBUG
    finally:
        logger.close()


def test_file_output_is_masked_json(logging_config_with_file):
    logger = QuickRequestLogger(logging_config_with_file, name="quickrequest.test.file")
    logger.info(
        "Request started",
        method="GET",
        headers={"Authorization": "Bearer abc", "Accept": "application/json"},
    )
    logger.close()

    line = Path(logging_config_with_file.file_path).read_text(encoding="utf-8").strip()
    record = json.loads(line)
    assert record["message"] == "Request started"
    assert record["headers"]["Authorization"] == "***REDACTED***"
    assert record["headers"]["Accept"] == "application/json"


def test_extra_fields_in_output(tmp_path):
    path = tmp_path / "extra.log"
    config = LoggingConfig.create(
        format="json", enable_console=False, enable_file=True,
        file_path=str(path), extra_fields={"service": "billing"},
    )
    logger = QuickRequestLogger(config, name="quickrequest.test.extra")
    logger.warning("Slow response", duration_ms=5000)
    logger.close()

    record = json.loads(path.read_text(encoding="utf-8"))
    assert record["service"] == "billing"
    assert record["level"] == "WARNING"


def test_reinit_replaces_handlers(logging_config):
    first = QuickRequestLogger(logging_config, name="quickrequest.test.reinit")
    second = QuickRequestLogger(logging_config, name="quickrequest.test.reinit")
    assert len(second.logger.handlers) == 1
    first.close()
    second.close()


def test_close_idempotent(logging_config):
    logger = QuickRequestLogger(logging_config, name="quickrequest.test.close")
    logger.close()
    logger.close()
    assert logger.logger.handlers == []


def test_context_manager(logging_config):
    with QuickRequestLogger(logging_config, name="quickrequest.test.ctx") as logger:
        logger.debug("inside")
    assert logger.logger.handlers == []


def test_handler_factories(tmp_path):
    console = create_console_handler(logging.INFO, TextFormatter())
    assert console.level == logging.INFO

    path = tmp_path / "nested" / "dir" / "app.log"
    handler = create_file_handler(str(path), logging.DEBUG, TextFormatter(), max_bytes=1024, backup_count=2)
    try:
        assert isinstance(handler, RotatingFileHandler)
        assert path.parent.exists()
        assert handler.maxBytes == 1024
        assert handler.backupCount == 2
    finally:
        handler.close()
