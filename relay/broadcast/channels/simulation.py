"""
simulation.py — Log-only delivery channel for development and demos.

Selected with DELIVERY_PROVIDER=simulation. Every send is logged and
reported as delivered, except for ids listed in ``fail_for``. Only the
last ``keep_last`` deliveries are kept in ``sent``.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


class SimulationChannel:

    def __init__(
        self,
        fail_for: Optional[Iterable[int]] = None,
        *,
        keep_last: int = 100,
    ):
        self.fail_for = frozenset(fail_for or ())
        self.sent: Deque[Tuple[int, str]] = deque(maxlen=keep_last)

    async def send(self, recipient_id: int, text: str) -> bool:
        if recipient_id in self.fail_for:
            logger.info("[SIMULATION] Delivery to %s failed (configured)", recipient_id)
            return False

        logger.info(
            "[SIMULATION] → %s: %d chars → '%s'",
            recipient_id,
            len(text),
            text[:80] + ("..." if len(text) > 80 else ""),
        )
        self.sent.append((recipient_id, text))
        return True
