import json
import logging

import pytest
import structlog

from contact_relay.core.config import Settings
from contact_relay.core.logging import setup_logging


@pytest.fixture()
def log_file(tmp_path):
    path = tmp_path / "logs" / "relay.log"
    config = Settings(_env_file=None, LOG_FILE=str(path), LOG_LEVEL="INFO")
    setup_logging(config)
    yield path
    structlog.contextvars.clear_contextvars()
    setup_logging(Settings(_env_file=None))


def _records(path):
    for handler in logging.getLogger().handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text().splitlines() if line.strip()]


def test_records_are_json_with_message(log_file):
    logging.getLogger("contact_relay.test").info("hello world")

    record = _records(log_file)[-1]
    assert record["message"] == "hello world"
    assert record["level"] == "info"
    assert record["logger"] == "contact_relay.test"
    assert "timestamp" in record


def test_extra_fields_and_correlation_id(log_file):
    with structlog.contextvars.bound_contextvars(correlation_id="req-123"):
        logging.getLogger("contact_relay.test").info(
            "processed", extra={"event_name": "contact_request_accepted"}
        )

    record = _records(log_file)[-1]
    assert record["correlation_id"] == "req-123"
    assert record["event_name"] == "contact_request_accepted"


def test_pii_is_redacted(log_file):
    logging.getLogger("contact_relay.test").warning(
        "Submission from jane@example.com at 203.0.113.9"
    )

    record = _records(log_file)[-1]
    assert "jane@example.com" not in record["message"]
    assert "203.0.113.9" not in record["message"]
    assert "j***@example.com" in record["message"]
