from __future__ import annotations

import logging
from time import perf_counter

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.handlers.abuse import client_identity
from src.ops.events import (
    CORRELATION_ID_HEADER,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"


def request_client_id(request: Request) -> str:
    cached = getattr(request.state, "client_id", None)
    if cached:
        return cached
    peer = request.client.host if request.client else None
    return client_identity(request.headers, peer)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlation id, resolved client identity and one completion log line per request."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()
        token = set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id
        request.state.client_id = request_client_id(request)
        start = perf_counter()
        base_payload = {
            "method": request.method,
            "path": request.url.path,
            "client_id": request.state.client_id,
        }

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed %s %s",
                request.method,
                request.url.path,
                extra={
                    "event_type": "api.request.failed",
                    "correlation_id": correlation_id,
                    "ops_payload": {**base_payload, "duration_ms": int((perf_counter() - start) * 1000)},
                },
            )
            raise
        else:
            duration_ms = int((perf_counter() - start) * 1000)
            response.headers["X-Request-Id"] = correlation_id
            logger.info(
                "Request completed %s %s %d (%dms)",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "event_type": "api.request.completed",
                    "correlation_id": correlation_id,
                    "ops_payload": {
                        **base_payload,
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                },
            )
            return response
        finally:
            reset_correlation_id(token)


async def answer_bare_options(request: Request, call_next: RequestResponseEndpoint) -> Response:
    """Any OPTIONS request that is not a CORS preflight is a no-op 204."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers={"Allow": ALLOWED_METHODS})
    return await call_next(request)
