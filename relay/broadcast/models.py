"""
models.py — Delivery report types.

Per-recipient outcomes exist only inside one dispatch call; what leaves the
dispatcher is the aggregate count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class DeliveryReport:
    """Tally of one dispatch: recipients reached vs. not reached."""
    sent: int = 0
    errors: int = 0

    @property
    def total(self) -> int:
        return self.sent + self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {"sent": self.sent, "errors": self.errors}


@dataclass(frozen=True)
class ChannelSendReport:
    """Result of sending to one channel's subscribers."""
    channel: str
    sent: int = 0
    errors: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"sent": self.sent, "errors": self.errors, "channel": self.channel}


@dataclass(frozen=True)
class BroadcastReport:
    """Result of sending to every known recipient."""
    sent: int = 0
    errors: int = 0
    total_subscribers: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sent": self.sent,
            "errors": self.errors,
            "total_subscribers": self.total_subscribers,
        }
