"""
test_subscription_registry.py — Tests for the Subscription Registry.

Covers:
    • Channel-name validation (shared by subscribe and unsubscribe)
    • subscribe / unsubscribe outcomes, including duplicates and absences
    • recipients_of / all_recipients set semantics
    • list_subscriptions ordering and repeatability
    • Storage failures surfacing as StorageError
    • Validation happening before any storage access

Run with:
    pytest tests/test_subscription_registry.py -v
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from relay.core.database import Database
from relay.core.errors import (
    InvalidChannelNameError,
    InvalidMessageError,
    StorageError,
)
from relay.subscriptions.models import (
    SubscribeResult,
    SubscriptionRow,
    UnsubscribeResult,
)
from relay.subscriptions.registry import SubscriptionRegistry, is_unique_violation
from relay.subscriptions.validation import (
    is_valid_channel_name,
    validate_channel_name,
    validate_message,
)

from conftest import sqlite_url


async def _row_count(database: Database) -> int:
    async with database.session_factory() as session:
        return await session.scalar(select(func.count()).select_from(SubscriptionRow))


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Validation
# ═══════════════════════════════════════════════════════════════════════════

class TestChannelNameValidation:

    @pytest.mark.parametrize("name", ["news_1", "news", "N", "_", "ABC_def_123"])
    def test_valid_names(self, name):
        assert is_valid_channel_name(name)
        assert validate_channel_name(name) == name

    @pytest.mark.parametrize(
        "name",
        ["news 1", "news-1", "", "news.1", "news\n", "caffè", "١٢٣", "#news"],
    )
    def test_invalid_names(self, name):
        assert not is_valid_channel_name(name)
        with pytest.raises(InvalidChannelNameError):
            validate_channel_name(name)

    def test_case_is_preserved(self):
        assert validate_channel_name("News") == "News"


class TestMessageValidation:

    def test_exact_cap_accepted(self):
        assert validate_message("x" * 1000, max_length=1000) == "x" * 1000

    def test_over_cap_rejected(self):
        with pytest.raises(InvalidMessageError) as exc_info:
            validate_message("x" * 1001, max_length=1000)
        assert exc_info.value.details["length"] == 1001
        assert exc_info.value.status_code == 400

    def test_empty_allowed_by_default(self):
        assert validate_message("") == ""

    def test_empty_rejected_when_required(self):
        with pytest.raises(InvalidMessageError, match="empty"):
            validate_message("", allow_empty=False)

    def test_length_counts_utf8_bytes(self):
        # 600 two-byte characters encode to 1200 bytes
        with pytest.raises(InvalidMessageError) as exc_info:
            validate_message("é" * 600, max_length=1000)
        assert exc_info.value.details["length"] == 1200

    def test_multibyte_at_cap_accepted(self):
        assert validate_message("é" * 500, max_length=1000) == "é" * 500
        assert validate_message("€" * 333 + "x", max_length=1000)


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Subscribe / Unsubscribe
# ═══════════════════════════════════════════════════════════════════════════

class TestSubscribe:

    @pytest.mark.asyncio
    async def test_subscribe_then_lookup(self, registry):
        result = await registry.subscribe(123456, "news")
        assert result is SubscribeResult.SUBSCRIBED
        assert await registry.recipients_of("news") == {123456}

    @pytest.mark.asyncio
    async def test_duplicate_is_already_subscribed(self, registry, database):
        await registry.subscribe(123456, "news")
        result = await registry.subscribe(123456, "news")

        assert result is SubscribeResult.ALREADY_SUBSCRIBED
        assert await _row_count(database) == 1

    @pytest.mark.asyncio
    async def test_same_recipient_many_channels(self, registry):
        assert await registry.subscribe(1, "a") is SubscribeResult.SUBSCRIBED
        assert await registry.subscribe(1, "b") is SubscribeResult.SUBSCRIBED

    @pytest.mark.asyncio
    async def test_channel_names_are_case_sensitive(self, registry):
        await registry.subscribe(1, "news")
        assert await registry.subscribe(1, "News") is SubscribeResult.SUBSCRIBED
        assert await registry.recipients_of("NEWS") == set()

    @pytest.mark.asyncio
    async def test_large_telegram_ids(self, registry):
        # Group chats use negative 64-bit ids
        big = 2**62
        group = -1001234567890
        await registry.subscribe(big, "news")
        await registry.subscribe(group, "news")
        assert await registry.recipients_of("news") == {big, group}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["news 1", "news-1", "", "news.1"])
    async def test_invalid_name_rejected(self, registry, database, name):
        with pytest.raises(InvalidChannelNameError):
            await registry.subscribe(1, name)
        assert await _row_count(database) == 0

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_store_one_row(self, registry, database):
        results = await asyncio.gather(
            registry.subscribe(7, "race"),
            registry.subscribe(7, "race"),
        )
        assert sorted(r.value for r in results) == [
            "already_subscribed", "subscribed",
        ]
        assert await _row_count(database) == 1


class TestUnsubscribe:

    @pytest.mark.asyncio
    async def test_unsubscribe_existing(self, registry):
        await registry.subscribe(1, "news")
        result = await registry.unsubscribe(1, "news")

        assert result is UnsubscribeResult.REMOVED
        assert await registry.recipients_of("news") == set()

    @pytest.mark.asyncio
    async def test_unsubscribe_missing_is_not_an_error(self, registry, database):
        await registry.subscribe(2, "news")
        result = await registry.unsubscribe(1, "news")

        assert result is UnsubscribeResult.NOT_SUBSCRIBED
        assert await _row_count(database) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_only_removes_matching_pair(self, registry):
        await registry.subscribe(1, "a")
        await registry.subscribe(1, "b")
        await registry.subscribe(2, "a")

        await registry.unsubscribe(1, "a")

        assert await registry.recipients_of("a") == {2}
        assert await registry.recipients_of("b") == {1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["news 1", "news-1", "", "news.1"])
    async def test_invalid_name_rejected(self, registry, name):
        with pytest.raises(InvalidChannelNameError):
            await registry.unsubscribe(1, name)

    @pytest.mark.asyncio
    async def test_resubscribe_after_unsubscribe(self, registry):
        await registry.subscribe(1, "news")
        await registry.unsubscribe(1, "news")
        assert await registry.subscribe(1, "news") is SubscribeResult.SUBSCRIBED


class TestValidationBeforeStorage:

    @pytest.mark.asyncio
    async def test_subscribe_never_opens_a_session(self):
        session_factory = MagicMock()
        registry = SubscriptionRegistry(session_factory)

        with pytest.raises(InvalidChannelNameError):
            await registry.subscribe(1, "bad name")
        session_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_unsubscribe_never_opens_a_session(self):
        session_factory = MagicMock()
        registry = SubscriptionRegistry(session_factory)

        with pytest.raises(InvalidChannelNameError):
            await registry.unsubscribe(1, "bad.name")
        session_factory.assert_not_called()


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Queries
# ═══════════════════════════════════════════════════════════════════════════

class TestQueries:

    @pytest.mark.asyncio
    async def test_recipients_of_unknown_channel_is_empty(self, registry):
        assert await registry.recipients_of("nonexistent") == set()

    @pytest.mark.asyncio
    async def test_recipients_of_filters_by_channel(self, registry):
        await registry.subscribe(111, "tech")
        await registry.subscribe(222, "tech")
        await registry.subscribe(333, "news")

        assert await registry.recipients_of("tech") == {111, 222}

    @pytest.mark.asyncio
    async def test_all_recipients_is_distinct(self, registry):
        await registry.subscribe(5, "a")
        await registry.subscribe(5, "b")
        await registry.subscribe(6, "b")

        recipients = await registry.all_recipients()
        assert recipients == {5, 6}

    @pytest.mark.asyncio
    async def test_all_recipients_empty_store(self, registry):
        assert await registry.all_recipients() == set()

    @pytest.mark.asyncio
    async def test_list_subscriptions_ordering(self, registry):
        await registry.subscribe(30, "b")
        await registry.subscribe(20, "a")
        await registry.subscribe(10, "b")
        await registry.subscribe(40, "a")

        subs = await registry.list_subscriptions()
        assert [(s.channel_name, s.telegram_id) for s in subs] == [
            ("a", 20), ("a", 40), ("b", 10), ("b", 30),
        ]
        assert all(s.created_at.tzinfo is not None for s in subs)

    @pytest.mark.asyncio
    async def test_list_subscriptions_is_repeatable(self, registry):
        for rid, ch in [(3, "z"), (1, "m"), (2, "m")]:
            await registry.subscribe(rid, ch)

        first = await registry.list_subscriptions()
        second = await registry.list_subscriptions()
        assert first == second

    @pytest.mark.asyncio
    async def test_subscription_to_dict(self, registry):
        await registry.subscribe(9, "news")
        (sub,) = await registry.list_subscriptions()
        d = sub.to_dict()
        assert d["telegram_id"] == 9
        assert d["channel_name"] == "news"
        assert "T" in d["created_at"]


# ═══════════════════════════════════════════════════════════════════════════
# Section 4: Storage failures
# ═══════════════════════════════════════════════════════════════════════════

class TestStorageFailures:

    @pytest_asyncio.fixture
    async def broken_registry(self, tmp_path):
        # Schema never created: every statement fails with "no such table"
        db = Database.from_url(sqlite_url(tmp_path))
        yield SubscriptionRegistry(db.session_factory)
        await db.close()

    @pytest.mark.asyncio
    async def test_subscribe_raises_storage_error(self, broken_registry):
        with pytest.raises(StorageError) as exc_info:
            await broken_registry.subscribe(1, "news")
        assert exc_info.value.message == "Database error occurred"
        assert exc_info.value.operation == "subscribe"

    @pytest.mark.asyncio
    async def test_unsubscribe_raises_storage_error(self, broken_registry):
        with pytest.raises(StorageError):
            await broken_registry.unsubscribe(1, "news")

    @pytest.mark.asyncio
    async def test_queries_raise_storage_error(self, broken_registry):
        with pytest.raises(StorageError):
            await broken_registry.recipients_of("news")
        with pytest.raises(StorageError):
            await broken_registry.all_recipients()
        with pytest.raises(StorageError):
            await broken_registry.list_subscriptions()


class TestUniqueViolationDetection:

    def _integrity_error(self, orig: Exception) -> IntegrityError:
        return IntegrityError("INSERT ...", {}, orig)

    def test_sqlite_unique_message(self):
        exc = self._integrity_error(
            Exception("UNIQUE constraint failed: subscriptions.telegram_id, subscriptions.channel_name")
        )
        assert is_unique_violation(exc)

    def test_postgres_sqlstate(self):
        orig = Exception("duplicate key value violates unique constraint")
        orig.sqlstate = "23505"
        assert is_unique_violation(self._integrity_error(orig))

    def test_check_constraint_is_not_uniqueness(self):
        exc = self._integrity_error(Exception("CHECK constraint failed: ck_channel_name_format"))
        assert not is_unique_violation(exc)
