"""Unified API response wrapper.

All market endpoints return this envelope:
{
    "code": 0,           // 0=success, otherwise the AppError code
    "message": "success",
    "data": { ... },     // payload; on error the AppError details (or null)
    "timestamp": "2026-01-01T00:00:00.000Z",
    "request_id": "req_..."  // same id as the X-Request-ID header
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.pm_common.datetime_utils import to_iso_utc, utc_now


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: to_iso_utc(utc_now()))
    request_id: str = Field(default_factory=_new_request_id)


def _bind(resp: ApiResponse, request: Request | None) -> ApiResponse:
    # RequestLogMiddleware assigns the id; outside it the generated one stands.
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(
    data: Any = None, message: str = "success", request: Request | None = None
) -> ApiResponse:
    return _bind(ApiResponse(code=0, message=message, data=data), request)


def error_response(
    code: int, message: str, data: Any = None, request: Request | None = None
) -> ApiResponse:
    return _bind(ApiResponse(code=code, message=message, data=data), request)
