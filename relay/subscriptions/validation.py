"""
validation.py — Input rules checked before any storage or delivery call.

Channel names:
    non-empty, every character an ASCII letter, digit or underscore.
    Case-sensitive, no normalisation ("News" and "news" are different).

Messages:
    at most ``max_length`` bytes once UTF-8 encoded; optionally non-empty.
    "é" counts as two, so a 1000 cap admits 500 of them.
"""

from __future__ import annotations

import re

from relay.core.errors import InvalidChannelNameError, InvalidMessageError

# re.ASCII keeps \w from matching non-ASCII letters and digits
_CHANNEL_NAME_RE = re.compile(r"\w+", re.ASCII)

DEFAULT_MESSAGE_MAX_LENGTH = 1000


def is_valid_channel_name(channel_name: str) -> bool:
    """True if ``channel_name`` is non-empty and only [A-Za-z0-9_]."""
    return _CHANNEL_NAME_RE.fullmatch(channel_name) is not None


def validate_channel_name(channel_name: str) -> str:
    """Return ``channel_name`` unchanged, or raise InvalidChannelNameError."""
    if not is_valid_channel_name(channel_name):
        raise InvalidChannelNameError(channel_name)
    return channel_name


def validate_message(
    message: str,
    *,
    max_length: int = DEFAULT_MESSAGE_MAX_LENGTH,
    allow_empty: bool = True,
) -> str:
    """
    Check a message against the length cap.

    Parameters
    ----------
    message : str
        Text to send.
    max_length : int
        Inclusive upper bound on the UTF-8 encoded size of ``message``.
    allow_empty : bool
        If False, an empty message is rejected too.

    Returns
    -------
    str
        The message, unchanged.

    Raises
    ------
    InvalidMessageError
    """
    length = len(message.encode("utf-8"))
    if not allow_empty and not message:
        raise InvalidMessageError(
            "Message cannot be empty", length=length, max_length=max_length,
        )
    if length > max_length:
        raise InvalidMessageError(
            f"Message too long (max {max_length} chars)",
            length=length, max_length=max_length,
        )
    return message
