"""
FastAPI routes: subscription administration (all bearer-protected).

    GET    /api/v1/subscriptions                              — list all
    POST   /api/v1/subscriptions                              — subscribe
    DELETE /api/v1/subscriptions/{channel_name}/{telegram_id} — unsubscribe
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from relay.api.deps import get_registry
from relay.api.schemas import (
    GetSubscriptionsResponse,
    SubscribeRequest,
    SubscriptionOut,
    SubscriptionStatusResponse,
)
from relay.core.security import require_bearer_token
from relay.subscriptions.models import SubscribeResult
from relay.subscriptions.registry import SubscriptionRegistry

router = APIRouter(
    prefix="/api/v1/subscriptions",
    tags=["subscriptions"],
    dependencies=[Depends(require_bearer_token)],
)


@router.get(
    "",
    response_model=GetSubscriptionsResponse,
    summary="List subscriptions",
    description="All subscriptions ordered by channel name, then Telegram id.",
)
async def list_subscriptions(
    registry: SubscriptionRegistry = Depends(get_registry),
):
    subscriptions = await registry.list_subscriptions()
    return GetSubscriptionsResponse(
        subscriptions=[
            SubscriptionOut(
                telegram_id=s.telegram_id,
                channel_name=s.channel_name,
                created_at=s.created_at,
            )
            for s in subscriptions
        ],
        total=len(subscriptions),
    )


@router.post(
    "",
    response_model=SubscriptionStatusResponse,
    status_code=201,
    summary="Subscribe a chat to a channel",
    responses={409: {"model": SubscriptionStatusResponse}},
)
async def subscribe(
    request: SubscribeRequest,
    registry: SubscriptionRegistry = Depends(get_registry),
):
    result = await registry.subscribe(request.telegram_id, request.channel_name)
    body = SubscriptionStatusResponse(
        status=result.value,
        telegram_id=request.telegram_id,
        channel_name=request.channel_name,
    )
    if result is SubscribeResult.ALREADY_SUBSCRIBED:
        return JSONResponse(status_code=409, content=body.model_dump())
    return body


@router.delete(
    "/{channel_name}/{telegram_id}",
    response_model=SubscriptionStatusResponse,
    summary="Unsubscribe a chat from a channel",
    description="Answers status=not_subscribed (200) when there was nothing to remove.",
)
async def unsubscribe(
    channel_name: str,
    telegram_id: int,
    registry: SubscriptionRegistry = Depends(get_registry),
):
    result = await registry.unsubscribe(telegram_id, channel_name)
    return SubscriptionStatusResponse(
        status=result.value,
        telegram_id=telegram_id,
        channel_name=channel_name,
    )
