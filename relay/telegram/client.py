"""
client.py — Minimal async client for the Telegram Bot API.

Used by the Telegram delivery channel for ``sendMessage``; the command bot
runs on python-telegram-bot (see bot.py). One pooled ``httpx.AsyncClient``
is shared by every concurrent delivery.

``send_message`` raises ``TelegramAPIError`` when the API answers with an HTTP
error or ``"ok": false``; transport errors surface as ``httpx.HTTPError``.
Callers that only care about success (the delivery channel) collapse both.

The bot token is part of every URL, so URLs are never logged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.telegram.org"


class TelegramAPIError(Exception):
    """The Bot API rejected a request."""

    def __init__(self, method: str, description: str, status_code: Optional[int] = None):
        super().__init__(f"Telegram {method} failed: {description}")
        self.method = method
        self.description = description
        self.status_code = status_code


class TelegramClient:
    """
    Bot API client over a shared ``httpx.AsyncClient``.

    Usage:
        client = TelegramClient(token)
        await client.send_message(123456, "hello")
        await client.close()
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not token:
            raise ValueError("Missing Telegram bot token")
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._http_client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def _call(self, method: str, payload: Dict[str, Any]) -> Any:
        client = await self._get_client()
        url = f"{self._base_url}/bot{self._token}/{method}"
        response = await client.post(url, json=payload, timeout=self._timeout)

        try:
            body = response.json()
        except ValueError:
            raise TelegramAPIError(
                method,
                f"non-JSON response (HTTP {response.status_code})",
                response.status_code,
            )

        if response.status_code >= 400 or not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            raise TelegramAPIError(method, description, response.status_code)

        return body.get("result")

    async def send_message(self, chat_id: int, text: str) -> Dict[str, Any]:
        """Send ``text`` to ``chat_id``; returns the Message object."""
        return await self._call(
            "sendMessage",
            {
                "chat_id": chat_id,
                "text": text,
                "disable_web_page_preview": True,
            },
        )

