"""Tests for logging setup and formatters."""

import json
import logging

import pytest

from search_broker.utils.logging import ConsoleFormatter, JSONFormatter, get_logger, setup_logging


def make_record(**extra):
    record = logging.LogRecord("search_broker.test", logging.INFO, __file__, 1, "created domain", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_includes_context_fields():
    data = json.loads(JSONFormatter().format(make_record(instance_name="es-u1", plan_id="es-small", duration=1.5)))
    assert data["message"] == "created domain"
    assert data["instance_name"] == "es-u1"
    assert data["plan_id"] == "es-small"
    assert data["duration"] == 1.5
    assert "operation" not in data


def test_console_formatter_prefixes_instance():
    line = ConsoleFormatter().format(make_record(instance_name="es-u1"))
    assert "[es-u1] created domain" in line


def test_setup_logging_writes_json_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "broker.jsonl"
    setup_logging("debug", log_file=log_file)

    get_logger("search_broker.test").info("hello", extra={"operation": "provision"})
    for handler in logging.getLogger().handlers:
        handler.flush()

    entry = json.loads(log_file.read_text().splitlines()[-1])
    assert entry["message"] == "hello"
    assert entry["operation"] == "provision"
    assert logging.getLogger("botocore").level == logging.WARNING
