"""
bot.py — Telegram command front-end on python-telegram-bot.

The ``Application`` owns long polling, update offsets, retries and command
parsing; the relay only supplies the command callbacks. It is started and
stopped by the FastAPI lifespan and never blocks the HTTP API.

    getUpdates (Updater) ──▶ CommandHandler("subscribe" | "unsubscribe" | "help")
                                   │
                                   ▼
                     SubscriptionCommands ──▶ reply_text(reply)

Exceptions raised inside a callback are routed to ``on_error`` and logged;
the Application keeps polling. ``stop()`` never raises, so a broken bot
cannot abort the rest of the shutdown sequence.
"""

from __future__ import annotations

import logging
from typing import Optional

from telegram import BotCommand, Update
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes

from relay.core.logging_config import log_context
from relay.telegram.client import DEFAULT_API_BASE_URL
from relay.telegram.commands import BOT_COMMANDS, HELP_TEXT, SubscriptionCommands

logger = logging.getLogger(__name__)


class TelegramBot:
    """
    Command bot for /subscribe, /unsubscribe and /help.

    Usage:
        bot = TelegramBot(token, SubscriptionCommands(registry))
        await bot.start()
        ...
        await bot.stop()
    """

    def __init__(
        self,
        token: str,
        commands: SubscriptionCommands,
        *,
        base_url: str = DEFAULT_API_BASE_URL,
        poll_timeout: int = 30,
    ):
        self.commands = commands
        self.poll_timeout = poll_timeout
        self.application = (
            Application.builder()
            .token(token)
            .base_url(f"{base_url.rstrip('/')}/bot")
            .concurrent_updates(True)
            .build()
        )

        self.application.add_handler(CommandHandler("subscribe", self.on_subscribe))
        self.application.add_handler(CommandHandler("unsubscribe", self.on_unsubscribe))
        self.application.add_handler(CommandHandler(["help", "start"], self.on_help))
        self.application.add_error_handler(self.on_error)

    # ── Lifecycle ──

    async def start(self) -> None:
        """Connect, publish the command menu and start polling."""
        logger.info("Starting Telegram bot")
        await self.application.initialize()
        await self._register_commands()
        await self.application.start()
        await self.application.updater.start_polling(
            timeout=self.poll_timeout,
            allowed_updates=[Update.MESSAGE],
            error_callback=self._on_polling_error,
        )
        logger.info("Telegram bot polling as @%s", self.application.bot.username)

    async def stop(self) -> None:
        """Stop polling and release the bot's connections. Never raises."""
        app = self.application
        steps = []
        if app.updater is not None and app.updater.running:
            steps.append(("updater", app.updater.stop))
        if app.running:
            steps.append(("application", app.stop))
        steps.append(("shutdown", app.shutdown))

        for name, step in steps:
            try:
                await step()
            except Exception:
                logger.exception("Telegram bot %s did not stop cleanly", name)
        logger.info("Telegram bot stopped")

    @property
    def running(self) -> bool:
        updater = self.application.updater
        return bool(self.application.running and updater is not None and updater.running)

    # ── Command callbacks ──

    async def on_subscribe(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        with log_context(telegram_id=chat.id, command="subscribe"):
            reply = await self.commands.subscribe(chat.id, _channel_argument(context))
            await self._reply(update, reply)

    async def on_unsubscribe(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat = update.effective_chat
        if chat is None:
            return
        with log_context(telegram_id=chat.id, command="unsubscribe"):
            reply = await self.commands.unsubscribe(chat.id, _channel_argument(context))
            await self._reply(update, reply)

    async def on_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await self._reply(update, HELP_TEXT)

    async def on_error(self, update: Optional[object], context: ContextTypes.DEFAULT_TYPE) -> None:
        update_id = getattr(update, "update_id", None)
        logger.error(
            "Bot update %s failed: %s", update_id, context.error,
            exc_info=context.error,
        )

    # ── Helpers ──

    async def _reply(self, update: Update, text: str) -> None:
        message = update.effective_message
        if message is None:
            return
        try:
            await message.reply_text(text)
        except TelegramError as exc:
            chat_id = update.effective_chat.id if update.effective_chat else None
            logger.error("Could not reply to %s: %s", chat_id, exc)

    async def _register_commands(self) -> None:
        try:
            await self.application.bot.set_my_commands(
                [BotCommand(name, description) for name, description in BOT_COMMANDS]
            )
        except TelegramError as exc:
            logger.warning("Could not register bot commands: %s", exc)

    @staticmethod
    def _on_polling_error(exc: TelegramError) -> None:
        logger.warning("Telegram polling error (will retry): %s", exc)


def _channel_argument(context: ContextTypes.DEFAULT_TYPE) -> str:
    # Everything after the command word, so "my news" stays one (invalid) name
    return " ".join(context.args or ())
