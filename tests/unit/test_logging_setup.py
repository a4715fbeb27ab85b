"""Unit tests for logging configuration and the JSON formatter."""

import json
import logging
import sys

import pytest

from contact_server.bootstrap.logging_setup import (
    LOGGER_NAME,
    CorrelationIdFilter,
    JsonFormatter,
    configure_logging,
    redact_personal_data,
)


def _record(msg="Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="contact_server.test",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(name="json_formatter")
def json_formatter_fixture():
    """Create a JSON formatter instance."""
    return JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")


@pytest.fixture(name="restore_project_logger")
def restore_project_logger_fixture():
    """Undo handler changes made by configure_logging."""
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield logger
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate


def test_json_formatter_basic_fields(json_formatter):
    """Every line carries timestamp, level, correlation ID, component and message."""
    output = json_formatter.format(
        _record(correlation_id="test-correlation-id", component="storage")
    )
    log_data = json.loads(output)

    assert log_data["level"] == "INFO"
    assert log_data["correlation_id"] == "test-correlation-id"
    assert log_data["component"] == "storage"
    assert log_data["message"] == "Test message"
    assert "timestamp" in log_data


def test_json_formatter_includes_known_extras_only(json_formatter):
    """Whitelisted extras are emitted and unknown attributes are not."""
    log_data = json.loads(
        json_formatter.format(
            _record(event="storage_appended", records=3, unrelated="hidden")
        )
    )
    assert log_data["event"] == "storage_appended"
    assert log_data["records"] == 3
    assert "unrelated" not in log_data


def test_json_formatter_keys_are_sorted(json_formatter):
    """Keys are emitted in a stable order."""
    output = json_formatter.format(_record(event="x", status_code=200))
    keys = list(json.loads(output))
    assert keys == sorted(keys)


def test_json_formatter_redacts_personal_data_in_extras(json_formatter):
    """Submitted personal data never reaches the log stream."""
    log_data = json.loads(
        json_formatter.format(_record(error="bad ada@example.com +44 20 7946 0958"))
    )
    assert "ada@example.com" not in log_data["error"]
    assert "7946" not in log_data["error"]


def test_json_formatter_includes_exception(json_formatter):
    """Exception tracebacks are serialized."""
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record()
        record.exc_info = sys.exc_info()
    log_data = json.loads(json_formatter.format(record))
    assert "ValueError: boom" in log_data["exception"]


@pytest.mark.parametrize(
    "value",
    ["127.0.0.1:8080", "request_complete", "/addData", "10.5"],
)
def test_redaction_leaves_ordinary_values_alone(value):
    """Addresses, event names and paths are not mistaken for personal data."""
    assert redact_personal_data(value) == value


@pytest.mark.parametrize(
    "value", ["ada@example.com", "5551234567", "+1 (555) 123-4567"]
)
def test_redaction_masks_emails_and_phone_numbers(value):
    """E-mail addresses and phone numbers are replaced."""
    assert redact_personal_data(value) == "[REDACTED]"


def test_correlation_filter_supplies_placeholder():
    """Records logged without the adapter still format."""
    record = _record()
    assert CorrelationIdFilter().filter(record) is True
    assert record.correlation_id == "-"


def test_configure_logging_replaces_handlers(restore_project_logger):
    """Reconfiguring leaves exactly one handler at the requested level."""
    configure_logging("DEBUG")
    adapter = configure_logging("WARNING")
    logger = restore_project_logger
    assert adapter.logger is logger
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert logger.propagate is False


def test_configure_logging_unknown_level_defaults_to_info(restore_project_logger):
    """Unrecognised level names fall back to INFO."""
    configure_logging("chatty")
    assert restore_project_logger.level == logging.INFO


def test_configure_logging_writes_json_to_file(tmp_path, restore_project_logger):
    """A file destination receives one JSON object per line."""
    log_file = tmp_path / "logs" / "server.log"
    configure_logging("INFO", str(log_file))
    logging.getLogger("contact_server.test").info(
        "Hello", extra={"event": "greeting"}
    )
    for handler in restore_project_logger.handlers:
        handler.flush()

    entry = json.loads(log_file.read_text().splitlines()[-1])
    assert entry["message"] == "Hello"
    assert entry["event"] == "greeting"
    assert entry["correlation_id"] == "-"
    assert entry["component"] == "unknown"


def test_configure_logging_text_format(tmp_path, restore_project_logger):
    """The text format renders the correlation ID inline."""
    log_file = tmp_path / "server.log"
    configure_logging("INFO", str(log_file), use_json=False)
    logging.getLogger("contact_server.test").info("Plain")
    for handler in restore_project_logger.handlers:
        handler.flush()
    assert "INFO [-] contact_server.test :: Plain" in log_file.read_text()
