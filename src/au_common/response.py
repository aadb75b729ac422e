"""Response envelope shared by every /api/v1 route and the AppError handler.

    {"code": 0, "message": "success", "data": {...},
     "timestamp": "2026-03-01T12:00:00+00:00", "request_id": "req_a1b2c3d4e5f6"}

For a rejected bid ``code`` is the AppError code and ``data`` carries what the
client needs to retry straight away (``minimum_bid``, ``required_balance``,
``current_balance``).
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

REQUEST_ID_PREFIX = "req_"


def new_request_id() -> str:
    return f"{REQUEST_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def request_id_of(request: Request | None) -> str:
    """The id RequestLogMiddleware stored on the request, or a fresh one."""
    if request is not None:
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            return request_id
    return new_request_id()


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return ApiResponse(data=data, request_id=request_id_of(request))


def error_response(
    code: int,
    message: str,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=details, request_id=request_id_of(request))
