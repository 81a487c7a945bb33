"""
test_logging.py — Log context, formatters and bot-token redaction.

Covers:
    • log_context nesting and reset
    • JSON and pretty output carrying relay fields
    • The bot token never reaching the log output
    • setup_logging replacing only its own handler

Run with:
    pytest tests/test_logging.py -v
"""

from __future__ import annotations

import json
import logging

from relay.core.logging_config import (
    REDACTED,
    JSONFormatter,
    PrettyFormatter,
    TokenRedactingFilter,
    get_log_context,
    log_context,
    setup_logging,
)

from conftest import make_settings

TOKEN = "123456:SECRET-token"


def _record(msg: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("relay.test", logging.INFO, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:

    def test_nesting_and_reset(self):
        assert get_log_context() == {}
        with log_context(request_id="r1"):
            with log_context(telegram_id=42, command="subscribe"):
                assert get_log_context() == {
                    "request_id": "r1", "telegram_id": 42, "command": "subscribe",
                }
            assert get_log_context() == {"request_id": "r1"}
        assert get_log_context() == {}


class TestFormatters:

    def test_json_includes_context_and_extras(self):
        with log_context(request_id="abc"):
            line = JSONFormatter().format(
                _record("Dispatch complete", sent=3, errors=1, channel="news")
            )

        entry = json.loads(line)
        assert entry["message"] == "Dispatch complete"
        assert entry["request_id"] == "abc"
        assert (entry["sent"], entry["errors"], entry["channel"]) == (3, 1, "news")

    def test_pretty_tags_chat_and_command(self):
        with log_context(telegram_id=42, command="subscribe"):
            line = PrettyFormatter().format(_record("Subscribed"))
        assert "[chat 42 /subscribe]" in line
        assert line.endswith("relay.test: Subscribed")


class TestTokenRedaction:

    def test_token_in_message_args(self):
        record = _record("POST %s", f"https://api.telegram.org/bot{TOKEN}/getMe")
        TokenRedactingFilter(TOKEN).filter(record)

        assert TOKEN not in record.getMessage()
        assert f"/bot{REDACTED}/getMe" in record.getMessage()

    def test_other_messages_untouched(self):
        record = _record("Sent %d", 3)
        assert TokenRedactingFilter(TOKEN).filter(record) is True
        assert record.args == (3,)


class TestSetupLogging:

    def test_keeps_foreign_handlers_and_replaces_own(self, tmp_path):
        root = logging.getLogger()
        foreign = logging.NullHandler()
        root.addHandler(foreign)
        try:
            setup_logging(make_settings(tmp_path, TELEGRAM_BOT_TOKEN=TOKEN))
            setup_logging(make_settings(tmp_path, TELEGRAM_BOT_TOKEN=TOKEN))

            assert foreign in root.handlers
            own = [h for h in root.handlers if h.get_name() == "relay"]
            assert len(own) == 1
            assert any(isinstance(f, TokenRedactingFilter) for f in own[0].filters)
        finally:
            root.removeHandler(foreign)
