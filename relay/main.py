"""
FastAPI application entry point.

Run with:
    uvicorn --factory relay.main:create_app --port 8080

Or from the project root:
    python -m relay
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from telegram.error import TelegramError

# ── Core infrastructure ──
from relay.core.config import Settings, get_settings
from relay.core.database import Database
from relay.core.errors import ServerConfigurationError, register_error_handlers
from relay.core.health import HealthStatus, run_health_check
from relay.core.logging_config import setup_logging
from relay.core.middleware import RequestLoggingMiddleware

# ── Domain ──
from relay.broadcast.channels import DeliveryChannel
from relay.broadcast.channels.simulation import SimulationChannel
from relay.broadcast.channels.telegram import TelegramChannel
from relay.broadcast.dispatcher import BroadcastDispatcher
from relay.broadcast.service import BroadcastService
from relay.subscriptions.registry import SubscriptionRegistry
from relay.telegram.client import TelegramClient
from relay.telegram.bot import TelegramBot
from relay.telegram.commands import SubscriptionCommands

# ── API routers ──
from relay.api.v1.messages import router as messages_router
from relay.api.v1.subscriptions import router as subscriptions_router

logger = logging.getLogger(__name__)


def _build_channel(
    settings: Settings,
    client: Optional[TelegramClient],
) -> DeliveryChannel:
    if settings.DELIVERY_PROVIDER == "simulation":
        return SimulationChannel()
    if settings.DELIVERY_PROVIDER == "telegram":
        if client is None:
            raise ServerConfigurationError("TELEGRAM_BOT_TOKEN")
        return TelegramChannel(client)
    raise ServerConfigurationError("DELIVERY_PROVIDER")


def create_app(
    settings: Optional[Settings] = None,
    *,
    delivery_channel: Optional[DeliveryChannel] = None,
) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    settings : Settings | None
        Defaults to the cached environment settings.
    delivery_channel : DeliveryChannel | None
        Overrides the channel chosen by DELIVERY_PROVIDER.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    # ── Application lifespan (startup / shutdown) ──

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting %s v%s [%s]",
            settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
        )

        database = Database.from_settings(settings)
        await database.init_db()

        telegram_client: Optional[TelegramClient] = None
        if settings.telegram_configured:
            telegram_client = TelegramClient(
                settings.TELEGRAM_BOT_TOKEN,
                base_url=settings.TELEGRAM_API_BASE_URL,
                timeout_seconds=settings.TELEGRAM_SEND_TIMEOUT,
            )

        try:
            channel = delivery_channel or _build_channel(settings, telegram_client)
        except ServerConfigurationError:
            logger.critical(
                "Cannot start: %s delivery is not configured",
                settings.DELIVERY_PROVIDER,
            )
            await database.close()
            raise

        registry = SubscriptionRegistry(database.session_factory)
        dispatcher = BroadcastDispatcher(
            channel, max_concurrency=settings.DISPATCH_MAX_CONCURRENCY,
        )

        app.state.database = database
        app.state.registry = registry
        app.state.broadcast_service = BroadcastService(
            registry, dispatcher, max_message_length=settings.MESSAGE_MAX_LENGTH,
        )

        bot: Optional[TelegramBot] = None
        if settings.BOT_ENABLED and settings.telegram_configured:
            bot = TelegramBot(
                settings.TELEGRAM_BOT_TOKEN,
                SubscriptionCommands(registry),
                base_url=settings.TELEGRAM_API_BASE_URL,
                poll_timeout=settings.TELEGRAM_POLL_TIMEOUT,
            )
            try:
                await bot.start()
            except TelegramError as exc:
                # The API keeps serving; readiness reports the bot as down
                logger.error("Telegram bot failed to start: %s", exc)
                await bot.stop()
        elif settings.BOT_ENABLED:
            logger.warning("BOT_ENABLED but no TELEGRAM_BOT_TOKEN, bot not started")
        app.state.bot = bot

        yield

        logger.info("Shutting down %s", settings.APP_NAME)
        if bot is not None:
            await bot.stop()
        if telegram_client is not None:
            await telegram_client.close()
        await database.close()

    # ── Create application ──

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Channel subscriptions for a Telegram bot. Chats subscribe to "
            "named channels with /subscribe; the API sends a message to a "
            "channel's subscribers or to everyone at once."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middleware stack (outermost first) ──

    if settings.CORS_ALLOW_ALL or settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"] if settings.CORS_ALLOW_ALL else settings.CORS_ORIGINS,
            allow_credentials=not settings.CORS_ALLOW_ALL,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app, settings)

    # ── Register routers ──
    app.include_router(messages_router)
    app.include_router(subscriptions_router)

    # ── Health endpoints ──

    @app.get("/health", tags=["health"])
    async def health_check():
        """Liveness check: is the process serving requests?"""
        return {"status": "ok"}

    @app.get("/health/ready", tags=["health"])
    async def readiness():
        """Readiness check: database reachable and delivery configured."""
        bot: Optional[TelegramBot] = app.state.bot
        report = await run_health_check(
            settings,
            app.state.database,
            bot_running=bot.running if bot is not None else None,
        )
        if report.status is HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=report.to_dict())
        return report.to_dict()

    return app
