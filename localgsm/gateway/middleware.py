"""FastAPI middleware for LocalGSM.

Request logging with correlation IDs, and a mock bearer-token check that
mirrors the authentication errors of the real API without validating tokens.
"""

import logging
import time
import uuid
from typing import Callable, Tuple

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from localgsm.core.logging_config import correlation_scope, log_with_context

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "x-correlation-id"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that tags each request with a correlation ID and logs it."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log method, path, status and duration."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())

        with correlation_scope(correlation_id):
            start_time = time.perf_counter()
            try:
                response: Response = await call_next(request)
            except Exception:
                logger.exception(f"Request failed: {request.method} {request.url.path}")
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            log_with_context(
                logger,
                logging.INFO,
                f"{request.method} {request.url.path} {response.status_code} {duration_ms:.2f}ms",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class MockAuthMiddleware(BaseHTTPMiddleware):
    """Require an ``Authorization: Bearer <token>`` header on API paths.

    Any non-empty token is accepted. Paths outside ``protected_prefixes``
    (health probes, docs) are never checked.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        enabled: bool = False,
        protected_prefixes: Tuple[str, ...] = ("/v1/",),
    ):
        """Initialize auth middleware.

        Args:
            app: ASGI application
            enabled: Enforce the header; when False every request passes
            protected_prefixes: Path prefixes that require the header
        """
        super().__init__(app)
        self.enabled = enabled
        self.protected_prefixes = protected_prefixes

    @staticmethod
    def _unauthenticated(message: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"error": {"code": 401, "message": message, "status": "UNAUTHENTICATED"}},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Reject API requests without a bearer token when enabled."""
        if not self.enabled or not request.url.path.startswith(self.protected_prefixes):
            return await call_next(request)

        auth_header = request.headers.get("authorization")
        if not auth_header:
            return self._unauthenticated("Request is missing required authentication credential")

        if not auth_header.startswith("Bearer "):
            return self._unauthenticated("Invalid authentication credentials")

        if not auth_header[len("Bearer "):].strip():
            return self._unauthenticated("Invalid authentication token")

        return await call_next(request)
