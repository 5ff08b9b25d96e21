"""Request correlation middleware using ContextVar.

Takes the request id from the X-Request-ID header (or generates one) and
binds it for the lifetime of the request, so every log line emitted by
routers, services and the gateway carries it. The id is echoed back on the
response, and one access line is logged per request.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from core.observability.logging_setup import reset_request_id, set_request_id

logger = logging.getLogger("bookstore.access")

REQUEST_ID_HEADER = "X-Request-ID"


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id and log method, path, status and duration.

    Priority:
    1. X-Request-ID header (explicit, e.g. from a proxy)
    2. Freshly generated uuid4 hex
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        token = set_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_id(token)
