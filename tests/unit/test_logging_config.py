"""Unit tests for structured logging."""

import json
import logging
import uuid

from famguard.logging_config import JsonFormatter, RequestIdFilter, request_id_var


def make_record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord("famguard.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_extra_fields_are_emitted(self):
        record = make_record("Communication denied", rule="blocked", sender_kind="child")
        entry = json.loads(JsonFormatter().format(record))

        assert entry["message"] == "Communication denied"
        assert entry["level"] == "INFO"
        assert entry["rule"] == "blocked"
        assert entry["sender_kind"] == "child"

    def test_non_serializable_values_are_stringified(self):
        child_id = uuid.uuid4()
        entry = json.loads(JsonFormatter().format(make_record("Block set", child_id=child_id)))
        assert entry["child_id"] == str(child_id)

    def test_request_id_from_context(self):
        record = make_record("Message accepted")
        token = request_id_var.set("req-42")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        entry = json.loads(JsonFormatter().format(record))
        assert entry["request_id"] == "req-42"

    def test_no_request_id_outside_a_request(self):
        record = make_record("Feature flag set")
        RequestIdFilter().filter(record)

        entry = json.loads(JsonFormatter().format(record))
        assert "request_id" not in entry
