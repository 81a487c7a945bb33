"""
registry.py — Subscription Registry.

Owns the set of (telegram_id, channel_name) subscriptions. Every mutating
call validates the channel name before touching storage, so malformed input
never reaches the database.

═══════════════════════════════════════════════════════════════════════════
OUTCOMES
═══════════════════════════════════════════════════════════════════════════

    Operation            Normal results                  Raises
    ─────────────────    ────────────────────────────    ─────────────────────
    subscribe            SUBSCRIBED / ALREADY_SUBSCRIBED  InvalidChannelName,
                                                          StorageError
    unsubscribe          REMOVED / NOT_SUBSCRIBED         InvalidChannelName,
                                                          StorageError
    recipients_of        set (possibly empty)             StorageError
    all_recipients       set (possibly empty)             StorageError
    list_subscriptions   list ordered by channel, id      StorageError

Uniqueness is enforced by the unique index, not by a read-then-insert
check: two concurrent subscribes for the same pair race inside the
database and the loser sees ALREADY_SUBSCRIBED.
"""

from __future__ import annotations

import logging
from typing import List, Set

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from relay.core.errors import StorageError
from relay.subscriptions.models import (
    Subscription,
    SubscribeResult,
    SubscriptionRow,
    UnsubscribeResult,
)
from relay.subscriptions.validation import validate_channel_name

logger = logging.getLogger(__name__)

# PostgreSQL unique_violation
_UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """
    True if the driver error is a uniqueness-constraint violation.

    Other integrity failures (CHECK, NOT NULL) must not be mistaken for
    a duplicate subscription.
    """
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        if getattr(orig, attr, None) == _UNIQUE_VIOLATION_SQLSTATE:
            return True
    return "UNIQUE constraint failed" in str(orig)


class SubscriptionRegistry:
    """
    Create, remove and query subscriptions.

    Usage:
        registry = SubscriptionRegistry(database.session_factory)
        await registry.subscribe(123456, "news")
        ids = await registry.recipients_of("news")
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ── Mutations ──

    async def subscribe(self, telegram_id: int, channel_name: str) -> SubscribeResult:
        validate_channel_name(channel_name)

        try:
            async with self._session_factory() as session:
                session.add(
                    SubscriptionRow(telegram_id=telegram_id, channel_name=channel_name)
                )
                await session.commit()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                logger.info(
                    "Already subscribed: %s → '%s'", telegram_id, channel_name,
                    extra={"telegram_id": telegram_id, "channel": channel_name},
                )
                return SubscribeResult.ALREADY_SUBSCRIBED
            logger.error("Subscribe rejected by storage: %s", exc.orig)
            raise StorageError("subscribe") from exc
        except SQLAlchemyError as exc:
            logger.error("Subscribe failed: %s", exc)
            raise StorageError("subscribe") from exc

        logger.info(
            "Subscribed %s → '%s'", telegram_id, channel_name,
            extra={"telegram_id": telegram_id, "channel": channel_name},
        )
        return SubscribeResult.SUBSCRIBED

    async def unsubscribe(self, telegram_id: int, channel_name: str) -> UnsubscribeResult:
        validate_channel_name(channel_name)

        stmt = delete(SubscriptionRow).where(
            SubscriptionRow.telegram_id == telegram_id,
            SubscriptionRow.channel_name == channel_name,
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                removed = result.rowcount
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("Unsubscribe failed: %s", exc)
            raise StorageError("unsubscribe") from exc

        if removed == 0:
            return UnsubscribeResult.NOT_SUBSCRIBED

        logger.info(
            "Unsubscribed %s from '%s'", telegram_id, channel_name,
            extra={"telegram_id": telegram_id, "channel": channel_name},
        )
        return UnsubscribeResult.REMOVED

    # ── Queries ──

    async def recipients_of(self, channel_name: str) -> Set[int]:
        """Recipients subscribed to ``channel_name``; empty for unknown channels."""
        stmt = select(SubscriptionRow.telegram_id).where(
            SubscriptionRow.channel_name == channel_name
        )
        return set(await self._scalars(stmt, "recipients_of"))

    async def all_recipients(self) -> Set[int]:
        """Distinct recipients across every channel."""
        stmt = select(SubscriptionRow.telegram_id).distinct()
        return set(await self._scalars(stmt, "all_recipients"))

    async def list_subscriptions(self) -> List[Subscription]:
        """Every subscription, ordered by channel name then recipient id."""
        stmt = select(SubscriptionRow).order_by(
            SubscriptionRow.channel_name, SubscriptionRow.telegram_id
        )
        rows = await self._scalars(stmt, "list_subscriptions")
        return [row.to_subscription() for row in rows]

    async def _scalars(self, stmt, operation: str) -> list:
        try:
            async with self._session_factory() as session:
                result = await session.scalars(stmt)
                return list(result.all())
        except SQLAlchemyError as exc:
            logger.error("%s failed: %s", operation, exc)
            raise StorageError(operation) from exc
