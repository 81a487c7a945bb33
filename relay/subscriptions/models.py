"""
models.py — Data structures for the subscription registry.

Defines:
    • SubscriptionRow     — ORM mapping of the ``subscriptions`` table
    • Subscription        — immutable value handed to callers
    • SubscribeResult     — outcome of a subscribe call
    • UnsubscribeResult   — outcome of an unsubscribe call

═══════════════════════════════════════════════════════════════════════════
TABLE: subscriptions
═══════════════════════════════════════════════════════════════════════════

    | Column        | Type     | Notes                                    |
    |---------------|----------|------------------------------------------|
    | id            | INTEGER  | primary key                              |
    | telegram_id   | BIGINT   | recipient (Telegram chat id)             |
    | channel_name  | TEXT     | CHECK no space, length > 0               |
    | created_at    | INTEGER  | unix seconds, set on insert              |

Constraints:
    - UNIQUE (telegram_id, channel_name)  — idx_telegram_channel
    - INDEX (channel_name)                — idx_channel

Channels have no table of their own: a channel exists while at least one
row references it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from relay.core.database import Base


def _unix_now() -> int:
    return int(time.time())


class SubscriptionRow(Base):
    __tablename__ = "subscriptions"
    __table_args__ = (
        CheckConstraint(
            "channel_name NOT LIKE '% %' AND length(channel_name) > 0",
            name="ck_channel_name_format",
        ),
        Index("idx_telegram_channel", "telegram_id", "channel_name", unique=True),
        Index("idx_channel", "channel_name"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    channel_name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=_unix_now)

    def to_subscription(self) -> "Subscription":
        return Subscription(
            telegram_id=self.telegram_id,
            channel_name=self.channel_name,
            created_at=datetime.fromtimestamp(self.created_at, tz=timezone.utc),
        )


@dataclass(frozen=True)
class Subscription:
    """One (recipient, channel) pair with its creation time."""
    telegram_id: int
    channel_name: str
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "telegram_id": self.telegram_id,
            "channel_name": self.channel_name,
            "created_at": self.created_at.isoformat(),
        }


class SubscribeResult(str, Enum):
    SUBSCRIBED         = "subscribed"
    ALREADY_SUBSCRIBED = "already_subscribed"


class UnsubscribeResult(str, Enum):
    REMOVED        = "removed"
    NOT_SUBSCRIBED = "not_subscribed"   # nothing to remove; not an error
