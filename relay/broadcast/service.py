"""
service.py — Registry lookup + dispatch for the two outbound operations.

    send_to_channel(channel, message)
        message ≤ cap → channel name valid → recipients_of → dispatch

    broadcast_to_all(message)
        message non-empty and ≤ cap → all_recipients → dispatch

All validation runs before the first storage call. A storage failure while
resolving recipients propagates as StorageError, before any delivery is
attempted; delivery failures only show up in the counts.
"""

from __future__ import annotations

import logging

from relay.broadcast.dispatcher import BroadcastDispatcher
from relay.broadcast.models import BroadcastReport, ChannelSendReport
from relay.subscriptions.registry import SubscriptionRegistry
from relay.subscriptions.validation import (
    DEFAULT_MESSAGE_MAX_LENGTH,
    validate_channel_name,
    validate_message,
)

logger = logging.getLogger(__name__)


class BroadcastService:

    def __init__(
        self,
        registry: SubscriptionRegistry,
        dispatcher: BroadcastDispatcher,
        *,
        max_message_length: int = DEFAULT_MESSAGE_MAX_LENGTH,
    ):
        self.registry = registry
        self.dispatcher = dispatcher
        self.max_message_length = max_message_length

    async def send_to_channel(self, channel_name: str, message: str) -> ChannelSendReport:
        """Send ``message`` to every subscriber of ``channel_name``."""
        validate_message(message, max_length=self.max_message_length)
        validate_channel_name(channel_name)

        recipients = await self.registry.recipients_of(channel_name)
        if not recipients:
            logger.info(
                "Channel '%s' has no subscribers — nothing to send", channel_name,
                extra={"channel": channel_name},
            )
            return ChannelSendReport(channel=channel_name)

        logger.info(
            "Sending to channel '%s' (%d subscribers)", channel_name, len(recipients),
            extra={"channel": channel_name, "recipient_count": len(recipients)},
        )
        report = await self.dispatcher.dispatch(recipients, message)
        return ChannelSendReport(
            channel=channel_name, sent=report.sent, errors=report.errors,
        )

    async def broadcast_to_all(self, message: str) -> BroadcastReport:
        """Send ``message`` once to every recipient of any channel."""
        validate_message(message, max_length=self.max_message_length, allow_empty=False)

        recipients = await self.registry.all_recipients()
        if not recipients:
            logger.info("Broadcast requested but there are no subscribers")
            return BroadcastReport()

        logger.info(
            "Broadcasting to %d subscribers", len(recipients),
            extra={"recipient_count": len(recipients)},
        )
        report = await self.dispatcher.dispatch(recipients, message)
        return BroadcastReport(
            sent=report.sent,
            errors=report.errors,
            total_subscribers=len(recipients),
        )
