"""
dispatcher.py — Broadcast Dispatcher: concurrent fan-out of one message.

═══════════════════════════════════════════════════════════════════════════
DISPATCH FLOW
═══════════════════════════════════════════════════════════════════════════

    recipients (set)  +  message
              │
              ▼
    ┌─────────────────────┐
    │  empty set?         │──yes──▶  DeliveryReport(sent=0, errors=0)
    └─────────┬───────────┘          (no channel calls)
              │ no
              ▼
    ┌─────────────────────┐
    │  one task per       │  channel.send(recipient, message), exactly once
    │  recipient          │  bounded by a semaphore (max_concurrency)
    └─────────┬───────────┘
              │  results in any completion order
              ▼
    ┌─────────────────────┐
    │  tally              │  sent = Σ success, errors = len - sent
    └─────────────────────┘

Isolation:
    • A delivery that returns False, raises, or is slow affects only its
      own result. Exceptions are caught per task and counted as errors.
    • No retries; no distinction between failure causes.
    • The call returns only after every delivery has resolved. Each channel
      owns its own timeout (see channels/telegram.py).

The dispatcher holds no state between calls; one instance is shared by
every request.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import AbstractSet, Optional

from relay.broadcast.channels import DeliveryChannel
from relay.broadcast.models import DeliveryReport

logger = logging.getLogger(__name__)


class BroadcastDispatcher:
    """
    Send one message to many recipients concurrently.

    Parameters
    ----------
    channel : DeliveryChannel
        Per-recipient send capability.
    max_concurrency : int | None
        Upper bound on in-flight deliveries. None or 0 means unbounded.
    """

    def __init__(self, channel: DeliveryChannel, *, max_concurrency: Optional[int] = None):
        if max_concurrency is not None and max_concurrency < 0:
            raise ValueError("max_concurrency must be >= 0")
        self._channel = channel
        self._max_concurrency = max_concurrency or None

    @property
    def max_concurrency(self) -> Optional[int]:
        return self._max_concurrency

    async def dispatch(self, recipients: AbstractSet[int], message: str) -> DeliveryReport:
        """
        Deliver ``message`` to every recipient and tally the outcomes.

        Message validation (length cap, non-empty) is the caller's job and
        must happen before this call.

        Returns
        -------
        DeliveryReport
            ``sent`` successes and ``errors = len(recipients) - sent``.
            Never raises for individual delivery failures.
        """
        if not recipients:
            return DeliveryReport(sent=0, errors=0)

        targets = list(recipients)
        started = time.perf_counter()

        semaphore = (
            asyncio.Semaphore(self._max_concurrency)
            if self._max_concurrency else None
        )

        async def _deliver(recipient_id: int) -> bool:
            if semaphore is None:
                return await self._deliver_one(recipient_id, message)
            async with semaphore:
                return await self._deliver_one(recipient_id, message)

        results = await asyncio.gather(*(_deliver(r) for r in targets))

        sent = sum(1 for ok in results if ok)
        report = DeliveryReport(sent=sent, errors=len(targets) - sent)

        duration_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Dispatch complete: %d/%d delivered, %d errors (%.1fms)",
            report.sent, len(targets), report.errors, duration_ms,
            extra={
                "recipient_count": len(targets),
                "sent": report.sent,
                "errors": report.errors,
                "duration_ms": duration_ms,
            },
        )
        return report

    async def _deliver_one(self, recipient_id: int, message: str) -> bool:
        try:
            return bool(await self._channel.send(recipient_id, message))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning(
                "Delivery to %s raised %s: %s",
                recipient_id, type(exc).__name__, exc,
                extra={"telegram_id": recipient_id},
            )
            return False
