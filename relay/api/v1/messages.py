"""
FastAPI routes: outbound messages.

    POST /api/v1/messages/send        — send to one channel's subscribers
    POST /api/v1/messages/broadcast   — send to every subscriber (bearer)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from relay.api.deps import get_broadcast_service
from relay.api.schemas import (
    BroadcastRequest,
    BroadcastResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from relay.broadcast.service import BroadcastService
from relay.core.security import require_bearer_token

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.post(
    "/send",
    response_model=SendMessageResponse,
    summary="Send a message to a channel",
    description=(
        "Delivers the message to every subscriber of the channel. "
        "A channel without subscribers answers sent=0, errors=0."
    ),
)
async def send_message(
    request: SendMessageRequest,
    service: BroadcastService = Depends(get_broadcast_service),
):
    report = await service.send_to_channel(request.channel_name, request.message)
    return SendMessageResponse(**report.to_dict())


@router.post(
    "/broadcast",
    response_model=BroadcastResponse,
    summary="Broadcast a message to every subscriber",
    dependencies=[Depends(require_bearer_token)],
)
async def broadcast(
    request: BroadcastRequest,
    service: BroadcastService = Depends(get_broadcast_service),
):
    report = await service.broadcast_to_all(request.message)
    return BroadcastResponse(**report.to_dict())
