"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Domain-specific exception classes
    • Consistent JSON error response format
    • Automatic logging of unhandled errors
    • Request context in error responses (non-production)

Usage:
    from relay.core.errors import (
        RelayError,
        InvalidChannelNameError,
        StorageError,
        register_error_handlers,
    )

    raise InvalidChannelNameError("news 1")

"Already subscribed" / "not subscribed" are ordinary registry results,
not errors — see relay.subscriptions.models.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from relay.core.config import Settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class RelayError(Exception):
    """Base exception for all application errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}


class InvalidInputError(RelayError):
    """Caller input broke a validation rule (400)."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "INVALID_INPUT",
        field: Optional[str] = None,
        **details: Any,
    ):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=d,
        )


class InvalidChannelNameError(InvalidInputError):
    """Channel name is empty or has characters outside [A-Za-z0-9_]."""

    def __init__(self, channel_name: str):
        super().__init__(
            "Invalid channel name. Only letters, numbers, and underscores are allowed.",
            error_code="INVALID_CHANNEL_NAME",
            field="channel_name",
            channel_name=channel_name,
        )
        self.channel_name = channel_name


class InvalidMessageError(InvalidInputError):
    """Message is empty where a payload is required, or over the cap."""

    def __init__(self, message: str, *, length: int, max_length: int):
        super().__init__(
            message,
            error_code="INVALID_MESSAGE",
            field="message",
            length=length,
            max_length=max_length,
        )


class StorageError(RelayError):
    """
    The subscription store failed (500).

    The driver error is logged where it is caught; the client only sees
    a generic message.
    """

    def __init__(self, operation: str):
        super().__init__(
            message="Database error occurred",
            status_code=500,
            error_code="STORAGE_ERROR",
            details={"operation": operation},
        )
        self.operation = operation


class AuthenticationError(RelayError):
    """Missing or wrong bearer token (401)."""

    def __init__(self, message: str = "Invalid or missing authorization"):
        super().__init__(
            message=message,
            status_code=401,
            error_code="UNAUTHORIZED",
        )


class ServerConfigurationError(RelayError):
    """A required server-side setting is missing (500)."""

    def __init__(self, setting: str):
        super().__init__(
            message="Server configuration error",
            status_code=500,
            error_code="SERVER_CONFIGURATION_ERROR",
        )
        self.setting = setting


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
    include_path: bool = False,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    if request and include_path:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Register all exception handlers on the FastAPI app."""
    include_path = not settings.is_production

    @app.exception_handler(RelayError)
    async def handle_relay_error(request: Request, exc: RelayError):
        log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(
            log_level,
            "API Error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        response = _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request, include_path,
        )
        if headers:
            response.headers.update(headers)
        return response

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if settings.DEBUG else "Internal server error"
        details = (
            {"traceback": traceback.format_exc().split("\n")}
            if settings.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", message, details, request, include_path,
        )
