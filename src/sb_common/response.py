"""Response envelope shared by every endpoint.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "...", "request_id": "req_..."}

``code`` is 0 on success and the AppError code otherwise; ``data`` is null
on errors. request_id matches the X-Request-ID response header.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _request_id(request: Request | None) -> str:
    if request is None:
        return new_request_id()
    # Set by RequestLogMiddleware.
    return getattr(request.state, "request_id", None) or new_request_id()


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return ApiResponse(data=data, request_id=_request_id(request))


def error_response(
    code: int, message: str, request: Request | None = None
) -> ApiResponse:
    return ApiResponse(code=code, message=message, request_id=_request_id(request))
