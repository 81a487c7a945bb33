"""
telegram.py — Telegram delivery channel.

Delivery mechanism:
    • Bot API ``sendMessage`` to the recipient's chat id
    • Per-call HTTP timeout from TELEGRAM_SEND_TIMEOUT, so every delivery
      resolves within bounded time
    • Success = HTTP 2xx with ``"ok": true``

Failure causes (blocked bot, unknown chat, flood-wait, timeout, transport
error) are logged and collapsed to ``False``.
"""

from __future__ import annotations

import logging

import httpx

from relay.telegram.client import TelegramAPIError, TelegramClient

logger = logging.getLogger(__name__)


class TelegramChannel:
    """Sends broadcast messages through a shared TelegramClient."""

    def __init__(self, client: TelegramClient):
        self._client = client

    async def send(self, recipient_id: int, text: str) -> bool:
        try:
            await self._client.send_message(recipient_id, text)
        except TelegramAPIError as exc:
            logger.warning(
                "[TELEGRAM] Delivery to %s rejected: %s",
                recipient_id, exc.description,
                extra={"telegram_id": recipient_id},
            )
            return False
        except httpx.HTTPError as exc:
            logger.warning(
                "[TELEGRAM] Delivery to %s failed: %s: %s",
                recipient_id, type(exc).__name__, exc,
                extra={"telegram_id": recipient_id},
            )
            return False

        logger.debug("[TELEGRAM] Delivered to %s", recipient_id)
        return True
