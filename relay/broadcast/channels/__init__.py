"""
channels — Delivery backends.

Each channel exposes:
    async send(recipient_id, text) → bool

True means the backend accepted the message. Channels never raise for a
failed delivery; the dispatcher still guards against ones that do.
"""

from __future__ import annotations

from typing import Protocol


class DeliveryChannel(Protocol):
    async def send(self, recipient_id: int, text: str) -> bool:
        ...
