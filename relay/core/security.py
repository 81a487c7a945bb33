"""
Bearer-token gate for admin routes.

Protected routes declare ``Depends(require_bearer_token)``. The expected
token is SUPER_SECRET_KEY; if it is unset every protected route answers
500 rather than silently running unauthenticated.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional

from fastapi import Request

from relay.core.config import Settings
from relay.core.errors import AuthenticationError, ServerConfigurationError

logger = logging.getLogger(__name__)


def check_bearer_token(authorization: Optional[str], settings: Settings) -> None:
    """Raise unless ``authorization`` is ``Bearer <SUPER_SECRET_KEY>``."""
    secret = settings.SUPER_SECRET_KEY or ""
    if not secret:
        logger.error("SUPER_SECRET_KEY is not set in environment")
        raise ServerConfigurationError("SUPER_SECRET_KEY")

    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(
        authorization.encode(), expected.encode()
    ):
        raise AuthenticationError()


async def require_bearer_token(request: Request) -> None:
    """FastAPI dependency wrapping check_bearer_token."""
    check_bearer_token(
        request.headers.get("Authorization"),
        request.app.state.settings,
    )
