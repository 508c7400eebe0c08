"""Тесты форматтеров логов."""

import json
import logging
import sys

import pytest

from quickrequest.core.logging.formatters import (
    JSONFormatter,
    TextFormatter,
    extra_fields,
    get_formatter,
)


def make_record(msg="Request completed", **extra):
    record = logging.LogRecord("quickrequest.client", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_extra_fields_only_custom():
    record = make_record(method="GET", status=200)
    assert extra_fields(record) == {"method": "GET", "status": 200}


def test_json_formatter():
    output = json.loads(JSONFormatter().format(make_record(method="GET", duration_ms=12.5)))
    assert output["message"] == "Request completed"
    assert output["level"] == "INFO"
    assert output["logger"] == "quickrequest.client"
    assert output["method"] == "GET"
    assert output["duration_ms"] == 12.5
    assert "timestamp" in output


def test_json_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    output = json.loads(JSONFormatter().format(record))
    assert "ValueError: boom" in output["exception"]


def test_text_formatter_appends_pairs():
    line = TextFormatter().format(make_record(method="POST", status=201))
    assert "[INFO] [quickrequest.client] Request completed" in line
    assert line.endswith("method=POST status=201")


@pytest.mark.parametrize("name, cls", [("json", JSONFormatter), ("TEXT", TextFormatter)])
def test_get_formatter(name, cls):
    assert isinstance(get_formatter(name), cls)


def test_get_formatter_unknown():
    with pytest.raises(ValueError, match="Unknown format type"):
        get_formatter("xml")
