"""
Request ID middleware for request correlation.

Accepts or generates ``X-Request-ID``, exposes it on ``request.state`` and
in the response, and binds it to the logging context var so permission
decisions logged deep in the engine can be tied back to the request.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from famguard.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SLOW_REQUEST_MS = 1000


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a request ID and log slow or refused requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = {
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            }
            # Refusals are logged here without a reason; the engine logs the rule
            if response.status_code in (401, 403):
                logger.info("Request refused", extra=fields)
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)

            return response
        finally:
            request_id_var.reset(token)
