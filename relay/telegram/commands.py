"""
commands.py — Replies for the chat commands understood by the bot.

    /subscribe <channel>     add the sender's chat to a channel
    /unsubscribe <channel>   remove it again
    /help, /start            list commands

Command matching and argument splitting belong to python-telegram-bot (see
bot.py); this module only turns a (chat id, channel name) pair into registry
calls and a reply text. The channel name is everything after the command
word, so ``/subscribe my news`` is rejected as an invalid name rather than
silently truncated.

Replies never include storage error detail.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from relay.core.errors import InvalidChannelNameError, StorageError
from relay.subscriptions.models import SubscribeResult, UnsubscribeResult
from relay.subscriptions.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)

INVALID_NAME_REPLY = (
    "Invalid channel name. Only letters, numbers, and underscores are allowed."
)

# (command, description) as shown in the Telegram command menu
BOT_COMMANDS: List[Tuple[str, str]] = [
    ("subscribe", "Subscribe to a channel"),
    ("unsubscribe", "Unsubscribe from a channel"),
    ("help", "Show available commands"),
]

HELP_TEXT = "These commands are supported:\n" + "\n".join(
    f"/{name}" + (" <channel>" if name != "help" else "") + f" - {description}"
    for name, description in BOT_COMMANDS
)


class SubscriptionCommands:
    """Registry calls and reply texts behind /subscribe and /unsubscribe."""

    def __init__(self, registry: SubscriptionRegistry):
        self.registry = registry

    async def subscribe(self, chat_id: int, channel_name: str) -> str:
        try:
            result = await self.registry.subscribe(chat_id, channel_name)
        except InvalidChannelNameError:
            return INVALID_NAME_REPLY
        except StorageError:
            logger.warning("Bot subscribe failed for %s → '%s'", chat_id, channel_name)
            return f"Error subscribing to '{channel_name}'. Please try again later."

        if result is SubscribeResult.ALREADY_SUBSCRIBED:
            return f"You are already subscribed to '{channel_name}'"
        return f"Successfully subscribed to '{channel_name}'"

    async def unsubscribe(self, chat_id: int, channel_name: str) -> str:
        try:
            result = await self.registry.unsubscribe(chat_id, channel_name)
        except InvalidChannelNameError:
            return INVALID_NAME_REPLY
        except StorageError:
            logger.warning("Bot unsubscribe failed for %s ← '%s'", chat_id, channel_name)
            return f"Error unsubscribing from '{channel_name}'. Please try again later."

        if result is UnsubscribeResult.NOT_SUBSCRIBED:
            return f"You are not subscribed to '{channel_name}'"
        return f"Successfully unsubscribed from '{channel_name}'"
