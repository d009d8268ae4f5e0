"""Unified API response wrapper.

All API endpoints return this format:
{
    "code": 0,            // 0=success, non-0=error code
    "status": "SUCCESS",  // SUCCESS | BAD_REQUEST | ERROR
    "message": "success",
    "data": { ... },      // null on error
    "timestamp": "...",
    "request_id": "..."
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from src.pm_common.enums import ResultStatus


class ApiResponse(BaseModel):
    code: int = 0
    status: ResultStatus = ResultStatus.SUCCESS
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def status_for_http(http_status: int) -> ResultStatus:
    """Map an HTTP status onto the envelope's coarse result status."""
    if http_status < 400:
        return ResultStatus.SUCCESS
    if http_status < 500:
        return ResultStatus.BAD_REQUEST
    return ResultStatus.ERROR


def success_response(data: Any = None, message: str = "success") -> ApiResponse:
    return ApiResponse(code=0, status=ResultStatus.SUCCESS, message=message, data=data)


def error_response(code: int, message: str, http_status: int = 500) -> ApiResponse:
    return ApiResponse(
        code=code, status=status_for_http(http_status), message=message, data=None
    )
