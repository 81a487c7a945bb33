"""Shared fixtures: a throwaway SQLite database per test."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Set, Tuple

import pytest
import pytest_asyncio

from relay.core.config import Settings
from relay.core.database import Database
from relay.subscriptions.registry import SubscriptionRegistry


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}"


def make_settings(tmp_path, **overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = dict(
        DATABASE_URL=sqlite_url(tmp_path),
        ENVIRONMENT="test",
        DEBUG=False,
        BOT_ENABLED=False,
        DELIVERY_PROVIDER="simulation",
        TELEGRAM_BOT_TOKEN=None,
        SUPER_SECRET_KEY="s3cret",
        DISPATCH_MAX_CONCURRENCY=10,
        MESSAGE_MAX_LENGTH=1000,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeChannel:
    """
    Delivery channel with scripted outcomes.

    ``results`` maps recipient → True/False or an exception instance to
    raise; unlisted recipients succeed. ``delays`` maps recipient → seconds.
    """

    def __init__(
        self,
        results: Optional[Dict[int, object]] = None,
        delays: Optional[Dict[int, float]] = None,
    ):
        self.results = results or {}
        self.delays = delays or {}
        self.calls: List[Tuple[int, str]] = []
        self.completed: List[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def send(self, recipient_id: int, text: str) -> bool:
        self.calls.append((recipient_id, text))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(recipient_id, 0.01))
            outcome = self.results.get(recipient_id, True)
            if isinstance(outcome, BaseException):
                raise outcome
            return bool(outcome)
        finally:
            self.in_flight -= 1
            self.completed.append(recipient_id)

    @property
    def recipients_called(self) -> Set[int]:
        return {r for r, _ in self.calls}


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database.from_url(sqlite_url(tmp_path))
    await db.init_db()
    yield db
    await db.close()


@pytest.fixture
def registry(database) -> SubscriptionRegistry:
    return SubscriptionRegistry(database.session_factory)
