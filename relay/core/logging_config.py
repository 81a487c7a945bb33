"""
Structured logging for the relay.

Provides:
    • JSON lines in production, coloured one-liners in development
    • ``log_context``: scoped fields (request_id, telegram_id, command ...)
      attached to every record logged inside the block, by HTTP requests
      and bot commands alike
    • Bot token redaction: the token is part of every Bot API URL, and
      library loggers (httpx, telegram) print URLs

Usage:
    from relay.core.logging_config import log_context, setup_logging

    setup_logging(settings)
    with log_context(telegram_id=123, command="subscribe"):
        logger.info("Subscribed", extra={"channel": "news"})
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

from relay.core.config import Settings

_log_context: ContextVar[Dict[str, Any]] = ContextVar("relay_log_context", default={})

# Per-record fields passed with ``extra=`` by relay modules
_EXTRA_FIELDS = (
    "telegram_id", "channel", "recipient_count", "sent", "errors",
    "duration_ms", "status_code",
)

# Marks the handler installed by setup_logging so a second call replaces it
_HANDLER_NAME = "relay"

REDACTED = "<redacted>"


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Add ``fields`` to every record logged inside the block (nests)."""
    merged = {**_log_context.get(), **fields}
    token = _log_context.set(merged)
    try:
        yield merged
    finally:
        _log_context.reset(token)


def get_log_context() -> Dict[str, Any]:
    return _log_context.get()


def _record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = dict(get_log_context())
    for key in _EXTRA_FIELDS:
        if hasattr(record, key):
            fields[key] = getattr(record, key)
    return fields


# ── Token redaction ──

class TokenRedactingFilter(logging.Filter):
    """Replace the bot token in rendered messages and arguments."""

    def __init__(self, token: str):
        super().__init__()
        self._token = token

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if self._token in message:
            record.msg = message.replace(self._token, REDACTED)
            record.args = None
        return True


# ── JSON Formatter (Production) ──

class JSONFormatter(logging.Formatter):
    """One JSON object per line, relay fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_record_fields(record))

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        return json.dumps(entry, default=str)


# ── Pretty Formatter (Development) ──

class PrettyFormatter(logging.Formatter):
    """``12:00:01 INFO  [req 1a2b3c4d chat 42 /subscribe] relay.x: message``"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.RESET)
        ts = self.formatTime(record, "%H:%M:%S")
        fields = _record_fields(record)

        tags = []
        if fields.get("request_id"):
            tags.append(f"req {str(fields['request_id'])[:8]}")
        if fields.get("telegram_id") is not None:
            tags.append(f"chat {fields['telegram_id']}")
        if fields.get("command"):
            tags.append(f"/{fields['command']}")
        tag_str = f" [{' '.join(tags)}]" if tags else ""

        formatted = (
            f"{color}{ts} {record.levelname:8s}{self.RESET}"
            f"{tag_str} {record.name}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[1]:
            formatted += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return formatted


# ── Setup ──

def setup_logging(settings: Settings) -> None:
    """
    Install the relay's stdout handler on the root logger.

    Calling it again (one call per ``create_app``) replaces the previous
    relay handler and leaves handlers installed by anything else alone.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if settings.is_production else PrettyFormatter())
    if settings.TELEGRAM_BOT_TOKEN:
        handler.addFilter(TokenRedactingFilter(settings.TELEGRAM_BOT_TOKEN))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("telegram").setLevel(logging.WARNING)
