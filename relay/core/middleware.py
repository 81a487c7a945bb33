"""
Request middleware — one log line per API call.

Every request runs inside ``log_context(request_id=..., endpoint=...)`` so
registry and dispatcher logs emitted while serving it carry the same id.
The id is taken from ``X-Request-ID`` when the caller sends one and echoed
back on the response.

Health checks and the OpenAPI pages are served without a log line.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from relay.core.logging_config import log_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_UNLOGGED_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json")


def _new_request_id() -> str:
    return uuid.uuid4().hex[:16]


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or _new_request_id()
        path = request.url.path

        with log_context(request_id=request_id, endpoint=path):
            start = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                logger.error(
                    "%s %s → unhandled error after %.1fms",
                    request.method, path, (time.perf_counter() - start) * 1000,
                )
                raise

            duration_ms = (time.perf_counter() - start) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id

            if not path.startswith(_UNLOGGED_PREFIXES):
                logger.log(
                    logging.WARNING if response.status_code >= 400 else logging.INFO,
                    "%s %s → %d (%.1fms)",
                    request.method, path, response.status_code, duration_ms,
                    extra={"duration_ms": duration_ms, "status_code": response.status_code},
                )

        return response
