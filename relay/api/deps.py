"""
FastAPI dependencies resolving the handles built in the app lifespan.
"""

from __future__ import annotations

from fastapi import Request

from relay.broadcast.service import BroadcastService
from relay.subscriptions.registry import SubscriptionRegistry


def get_registry(request: Request) -> SubscriptionRegistry:
    return request.app.state.registry


def get_broadcast_service(request: Request) -> BroadcastService:
    return request.app.state.broadcast_service
