"""
Pydantic schemas for the relay API.

Field types only; the channel-name and message-length rules are enforced by
the registry / broadcast service so the bot and the API share one set of
checks and one error format.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class SendMessageRequest(BaseModel):
    """Request body for POST /api/v1/messages/send."""
    channel_name: str = Field(..., examples=["news"])
    message: str = Field(..., examples=["Deploy finished"])


class SendMessageResponse(BaseModel):
    sent: int
    errors: int
    channel: str


class BroadcastRequest(BaseModel):
    """Request body for POST /api/v1/messages/broadcast."""
    message: str = Field(..., examples=["Scheduled maintenance at 22:00 UTC"])


class BroadcastResponse(BaseModel):
    sent: int
    errors: int
    total_subscribers: int


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

class SubscriptionOut(BaseModel):
    telegram_id: int
    channel_name: str
    created_at: Optional[datetime] = None


class GetSubscriptionsResponse(BaseModel):
    subscriptions: List[SubscriptionOut]
    total: int


class SubscribeRequest(BaseModel):
    """Request body for POST /api/v1/subscriptions."""
    telegram_id: int = Field(..., examples=[123456789])
    channel_name: str = Field(..., examples=["news"])


class SubscriptionStatusResponse(BaseModel):
    status: str = Field(..., examples=["subscribed"])
    telegram_id: int
    channel_name: str
