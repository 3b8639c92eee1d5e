"""Per-request access log and request id.

The id is taken from an incoming X-Request-ID (set by the edge proxy) or
generated, stored on request.state for the response envelope, and echoed
back in the X-Request-ID header.

    INFO [POST] /api/v1/battles/bt_1/streams -> 202 (4ms) req_a1b2c3d4e5f6
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.sb_common.response import new_request_id

logger = logging.getLogger("sb.request")

_QUIET_PATHS = frozenset({"/health"})
_MAX_INCOMING_ID = 64


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get("X-Request-ID", "")
        request_id = incoming if 0 < len(incoming) <= _MAX_INCOMING_ID else new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if request.url.path not in _QUIET_PATHS:
            level = logging.WARNING if response.status_code >= 500 else logging.INFO
            logger.log(
                level,
                "[%s] %s -> %d (%.0fms) %s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request_id,
            )
        response.headers["X-Request-ID"] = request_id
        return response
