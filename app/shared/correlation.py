"""
Correlation IDs for request and job tracing.

The middleware reads X-Correlation-ID (or X-Request-ID) from the incoming
request, or generates one, and exposes it three ways: request.state for
error responses, a context variable for logging, and the response header.
Scripts open a CorrelationContext so one run shares one id.

Usage:
    app.add_middleware(CorrelationMiddleware)

    with CorrelationContext("migrate-quotes"):
        await migrate(db)
"""

import contextvars
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_correlation_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)

CORRELATION_HEADERS = [
    "X-Correlation-ID",
    "X-Request-ID",
]

RESPONSE_HEADER = "X-Correlation-ID"


def get_correlation_id() -> Optional[str]:
    """Correlation id of the current request or job, if any."""
    return _correlation_id_ctx.get()


def generate_correlation_id() -> str:
    """Short random id; 8 hex characters are enough to grep logs by."""
    return str(uuid.uuid4())[:8]


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and its response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = None
        for header in CORRELATION_HEADERS:
            correlation_id = request.headers.get(header)
            if correlation_id:
                break

        if not correlation_id:
            correlation_id = generate_correlation_id()

        request.state.correlation_id = correlation_id
        token = _correlation_id_ctx.set(correlation_id)

        try:
            response = await call_next(request)
            response.headers[RESPONSE_HEADER] = correlation_id
            return response
        finally:
            _correlation_id_ctx.reset(token)


def propagate_correlation_headers(headers: Optional[dict] = None) -> dict:
    """Copy of headers with the current correlation id added, for outgoing HTTP calls."""
    headers = dict(headers or {})
    cid = get_correlation_id()
    if cid:
        headers[RESPONSE_HEADER] = cid
    return headers


class CorrelationContext:
    """
    Sets a correlation id outside of a request.

    Example:
        with CorrelationContext() as cid:
            logger.info("Reconciling attachments")  # carries cid
    """

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _correlation_id_ctx.reset(self._token)
