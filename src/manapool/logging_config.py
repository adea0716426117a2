"""
Logging for the Manapool client.

Provides:
- LogSink: the two-level (debug/error) interface the request pipeline logs
  through. A stdlib logging.Logger satisfies it.
- NullLogSink: discards everything.
- setup_logging(): JSON or human-readable output for applications and the CLI,
  with credentials, emails and query strings scrubbed.

Usage:
    from manapool.logging_config import setup_logging, get_logger

    setup_logging(level="DEBUG", json_format=False)
    logger = get_logger(__name__)
"""

from __future__ import annotations

import contextlib
import json
import logging
import re
import sys
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

# Matches URLs: https://example.com/path?query=value
_URL_PATTERN = re.compile(r"(https?://[^\s\"'<>]+)")
_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # Manapool credential headers, e.g. "X-ManaPool-Access-Token: abc"
    (re.compile(r"(x-manapool-access-token|x-manapool-email)[=:\s]+['\"]?[^\s'\",}]+['\"]?", re.I), "[AUTH]"),
    # Generic tokens
    (re.compile(r"\b(access[_-]?token|bearer|token)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[TOKEN]"),
    (re.compile(r"\b[\w\.\-+]+@[\w\.-]+\.\w+\b"), "[EMAIL]"),
]

# Fields that must never appear in structured log output
BLOCKED_FIELDS: frozenset[str] = frozenset(
    {
        "access_token",
        "token",
        "secret",
        "password",
        "authorization",
        "credential",
        "email",
        "x-manapool-access-token",
        "x-manapool-email",
        "headers",
    }
)

# Standard LogRecord attributes (not user extras)
_RESERVED_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


@runtime_checkable
class LogSink(Protocol):
    """Minimal logging capability used by the request pipeline."""

    def debug(self, msg: str, *args: Any) -> None: ...

    def error(self, msg: str, *args: Any) -> None: ...


class NullLogSink:
    """Log sink that discards everything."""

    def debug(self, msg: str, *args: Any) -> None:
        pass

    def error(self, msg: str, *args: Any) -> None:
        pass


def safe_log(emit: Any, msg: str, *args: Any) -> None:
    """Call a sink method; a failing sink never affects the caller."""
    with contextlib.suppress(Exception):
        emit(msg, *args)


def _normalize_url(url: str) -> str:
    """Extract the path from a URL, dropping host and query string."""
    from urllib.parse import urlsplit

    parts = urlsplit(url)
    return parts.path or "/"


def _sanitize_url_in_text(match: re.Match[str]) -> str:
    path = _normalize_url(match.group(1))
    return path if path != "/" else "[URL]"


def _sanitize_text(text: str) -> str:
    """Scrub URLs (path only), credential headers, tokens and emails."""
    if not text:
        return text

    result = _URL_PATTERN.sub(_sanitize_url_in_text, text)
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _filter_log_record(record: dict[str, Any], *, _depth: int = 0) -> dict[str, Any]:
    """Drop blocked fields and sanitize the rest, recursing into dicts."""
    if _depth > 3:
        return {"_truncated": "max depth exceeded"}

    filtered: dict[str, Any] = {}
    for key, value in record.items():
        key_lower = key.lower()
        if any(blocked in key_lower for blocked in BLOCKED_FIELDS):
            continue

        if key_lower == "url" and isinstance(value, str):
            filtered["endpoint"] = _normalize_url(value)
        elif isinstance(value, (int, float, bool, type(None))):
            filtered[key] = value
        elif isinstance(value, str):
            filtered[key] = _sanitize_text(value)
        elif isinstance(value, dict):
            filtered[key] = _filter_log_record(value, _depth=_depth + 1)
        elif isinstance(value, (list, tuple)):
            filtered[key] = list(value) if len(value) <= 10 else f"[list:{len(value)} items]"
        else:
            filtered[key] = _sanitize_text(str(value))

    return filtered


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_text(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = _sanitize_text(self.formatException(record.exc_info))

        extra = _extra_fields(record)
        if extra:
            log_dict.update(_filter_log_record(extra))

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class SimpleFormatter(logging.Formatter):
    """Human-readable output with the same filtering."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:8s} {record.name}: {_sanitize_text(record.getMessage())}"

        extra = _extra_fields(record)
        if extra:
            filtered = _filter_log_record(extra)
            if filtered:
                extra_str = " ".join(f"{k}={v}" for k, v in filtered.items())
                base = f"{base} | {extra_str}"

        if record.exc_info:
            base = f"{base}\n{_sanitize_text(self.formatException(record.exc_info))}"
        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = True,
    stream: Any = None,
) -> None:
    """
    Configure root logging. Call once at application startup.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default True).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter() if json_format else SimpleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically get_logger(__name__))."""
    return logging.getLogger(name)
