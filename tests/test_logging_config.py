"""Tests for logging configuration module.

Verifies that logging configuration:
1. Filters out credentials and PII (BLOCKED_FIELDS)
2. Reduces URLs to their path
3. Produces valid JSON output
4. Provides log sinks that never break the caller
"""

from __future__ import annotations

import io
import json
import logging

import pytest

from manapool.logging_config import (
    BLOCKED_FIELDS,
    JsonFormatter,
    LogSink,
    NullLogSink,
    SimpleFormatter,
    _filter_log_record,
    _normalize_url,
    _sanitize_text,
    get_logger,
    safe_log,
    setup_logging,
)


def _record(msg: str = "test", level: int = logging.INFO, name: str = "test") -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )


class TestBlockedFields:
    """Test that sensitive fields are properly blocked."""

    def test_blocked_fields_cover_credentials(self) -> None:
        assert "access_token" in BLOCKED_FIELDS
        assert "email" in BLOCKED_FIELDS
        assert "x-manapool-access-token" in BLOCKED_FIELDS
        assert "headers" in BLOCKED_FIELDS

    def test_filter_removes_credentials(self) -> None:
        record = {"access_token": "tok", "email": "a@b.c", "msg": "test"}
        filtered = _filter_log_record(record)
        assert "access_token" not in filtered
        assert "email" not in filtered
        assert "msg" in filtered

    def test_filter_removes_partial_matches(self) -> None:
        """Fields containing blocked words should be removed."""
        record = {
            "seller_email": "value",
            "user_token": "value",
            "request_headers": {"X-ManaPool-Access-Token": "tok"},
            "safe_field": "keep",
        }
        filtered = _filter_log_record(record)
        assert "seller_email" not in filtered
        assert "user_token" not in filtered
        assert "request_headers" not in filtered
        assert "safe_field" in filtered

    def test_filter_case_insensitive(self) -> None:
        record = {"X-ManaPool-Email": "a@b.c", "Token": "secret2"}
        filtered = _filter_log_record(record)
        assert filtered == {}


class TestSanitizeText:
    def test_url_reduced_to_path(self) -> None:
        result = _sanitize_text(
            "API request: GET https://manapool.com/api/v1/seller/inventory?limit=500&offset=0"
        )
        assert "limit=500" not in result
        assert "manapool.com" not in result
        assert "/api/v1/seller/inventory" in result

    def test_credential_header_redacted(self) -> None:
        result = _sanitize_text("sent X-ManaPool-Access-Token: abc123xyz")
        assert "abc123xyz" not in result
        assert "[AUTH]" in result

    def test_token_redacted(self) -> None:
        result = _sanitize_text("using access_token=sk-secret-12345")
        assert "sk-secret-12345" not in result
        assert "[TOKEN]" in result

    def test_email_redacted(self) -> None:
        result = _sanitize_text("Seller seller@example.com authenticated")
        assert "seller@example.com" not in result
        assert "[EMAIL]" in result

    def test_empty_string_unchanged(self) -> None:
        assert _sanitize_text("") == ""

    def test_safe_text_unchanged(self) -> None:
        text = "Retrieved 12 inventory items (total: 40)"
        assert _sanitize_text(text) == text


class TestFilterLogRecord:
    def test_url_normalized_to_endpoint(self) -> None:
        record = {"url": "https://manapool.com/api/v1/orders/abc?since=2025"}
        filtered = _filter_log_record(record)
        assert "url" not in filtered
        assert filtered["endpoint"] == "/api/v1/orders/abc"

    def test_normalize_url_root(self) -> None:
        assert _normalize_url("https://manapool.com") == "/"

    def test_safe_fields_preserved(self) -> None:
        record = {"status": 503, "attempt": 2, "ratio": 0.5, "retrying": True}
        assert _filter_log_record(record) == record

    def test_list_capped_at_10(self) -> None:
        filtered = _filter_log_record({"items": list(range(15))})
        assert filtered["items"] == "[list:15 items]"

    def test_nested_dict_filtered(self) -> None:
        record = {"config": {"base_url_path": "/api", "access_token": "secret", "timeout": 30}}
        filtered = _filter_log_record(record)
        assert filtered["config"] == {"base_url_path": "/api", "timeout": 30}


class TestJsonFormatter:
    def test_contains_required_fields(self) -> None:
        parsed = json.loads(JsonFormatter().format(_record("hello world", name="manapool")))
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "manapool"
        assert parsed["msg"] == "hello world"
        assert "ts" in parsed

    def test_warning_includes_location(self) -> None:
        parsed = json.loads(JsonFormatter().format(_record(level=logging.WARNING)))
        assert parsed["file"] == "test.py"
        assert parsed["line"] == 10

    def test_extra_fields_filtered(self) -> None:
        record = _record()
        record.access_token = "secret123"
        record.status = 404
        parsed = json.loads(JsonFormatter().format(record))
        assert "access_token" not in parsed
        assert parsed["status"] == 404

    def test_message_sanitized(self) -> None:
        record = _record("request for buyer@example.com failed")
        parsed = json.loads(JsonFormatter().format(record))
        assert "buyer@example.com" not in parsed["msg"]


class TestSimpleFormatter:
    def test_basic_format(self) -> None:
        output = SimpleFormatter().format(_record("hello"))
        assert "INFO" in output
        assert "hello" in output

    def test_extra_fields_appended(self) -> None:
        record = _record("message")
        record.attempt = 3
        assert "attempt=3" in SimpleFormatter().format(record)


class TestSetupLogging:
    def test_setup_logging_json(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=True, stream=stream)

        get_logger("test_json").info("test message", extra={"status": 200})

        parsed = json.loads(stream.getvalue().strip())
        assert parsed["msg"] == "test message"
        assert parsed["status"] == 200

    def test_setup_logging_simple(self) -> None:
        stream = io.StringIO()
        setup_logging(json_format=False, stream=stream)

        get_logger("test_simple").info("simple test")

        output = stream.getvalue()
        assert "simple test" in output
        with pytest.raises(json.JSONDecodeError):
            json.loads(output.strip())

    def test_setup_logging_level(self) -> None:
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, json_format=False, stream=stream)

        logger = get_logger("test_level")
        logger.info("info message")
        logger.warning("warning message")

        output = stream.getvalue()
        assert "info message" not in output
        assert "warning message" in output


class TestLogSinks:
    def test_stdlib_logger_is_a_sink(self) -> None:
        assert isinstance(logging.getLogger("manapool"), LogSink)

    def test_null_sink(self) -> None:
        sink = NullLogSink()
        assert isinstance(sink, LogSink)
        sink.debug("x %d", 1)
        sink.error("y")

    def test_safe_log_swallows_sink_failure(self) -> None:
        def broken(msg: str, *args: object) -> None:
            raise RuntimeError("sink down")

        safe_log(broken, "API request: %s", "GET")

    def test_safe_log_passes_args(self) -> None:
        seen: list[tuple[str, tuple[object, ...]]] = []

        def capture(msg: str, *args: object) -> None:
            seen.append((msg, args))

        safe_log(capture, "status=%d", 200)
        assert seen == [("status=%d", (200,))]
