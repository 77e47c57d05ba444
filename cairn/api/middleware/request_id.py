"""
Request ID middleware for request correlation.

- Accepts the caller's X-Request-ID or generates a req-<hex> id
- Echoes it on the response and keeps it on request.state
- Binds it with correlation_scope, so a reconciliation pass triggered by the
  request logs under the request id
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cairn.logging_config import correlation_scope, get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 5000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind each request's X-Request-ID as the log correlation id."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or f"req-{uuid.uuid4().hex[:12]}"
        request.state.request_id = request_id

        with correlation_scope(request_id):
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start) * 1000

            response.headers[REQUEST_ID_HEADER] = request_id
            # Writes and session starts include a full reconciliation pass
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning(
                    "Slow request",
                    extra={
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": round(duration_ms, 1),
                    },
                )
            return response
