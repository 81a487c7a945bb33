"""
Health check aggregation — deep health check for the relay's subsystems.

Checks:
    • Database connectivity (SELECT 1 through the shared engine)
    • Telegram delivery configuration (provider, token, bot loop state)

Returns a structured health report suitable for:
    - Kubernetes readiness checks
    - Load balancer health checks
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from relay.core.config import Settings
from relay.core.database import Database

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    latency_ms: float = 0.0
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
        }
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = ""
    environment: str = ""
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


_start_time = time.monotonic()


async def check_database(database: Database) -> ComponentHealth:
    """Check the subscription store answers queries."""
    comp = ComponentHealth(name="database")
    start = time.monotonic()
    try:
        await database.ping()
        comp.message = "Connection available"
        comp.details = {"backend": database.engine.url.get_backend_name()}
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database health check failed: %s", e)
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "Database unreachable"
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


def check_delivery(settings: Settings, bot_running: Optional[bool] = None) -> ComponentHealth:
    """Check the delivery provider is usable and the bot loop is alive."""
    comp = ComponentHealth(name="delivery")
    start = time.monotonic()
    comp.details = {"provider": settings.DELIVERY_PROVIDER}

    if settings.DELIVERY_PROVIDER == "telegram" and not settings.telegram_configured:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "TELEGRAM_BOT_TOKEN is not set"
    elif settings.BOT_ENABLED and bot_running is False:
        comp.status = HealthStatus.DEGRADED
        comp.message = "Bot command loop is not running"
    else:
        comp.message = "Delivery configured"

    if bot_running is not None:
        comp.details["bot_running"] = bot_running
    comp.latency_ms = (time.monotonic() - start) * 1000
    return comp


async def run_health_check(
    settings: Settings,
    database: Database,
    bot_running: Optional[bool] = None,
) -> HealthReport:
    """Run all health checks and aggregate into a report."""
    report = HealthReport(
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime_seconds=time.monotonic() - _start_time,
    )

    report.components.append(await check_database(database))
    report.components.append(check_delivery(settings, bot_running))

    statuses = [c.status for c in report.components]
    if HealthStatus.UNHEALTHY in statuses:
        report.status = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        report.status = HealthStatus.DEGRADED
    else:
        report.status = HealthStatus.HEALTHY

    return report
