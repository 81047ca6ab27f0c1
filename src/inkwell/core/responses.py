"""Uniform response envelope.

Every endpoint answers with one of two shapes::

    {"success": true,  "data": ..., "message": "...", "meta": {...}}
    {"success": false, "error": {"message": "...", "details": ...}}

``message``, ``meta`` and ``details`` are omitted when not given. The
``success`` flag always agrees with the status class: the helpers refuse
to build a success body with a non-2xx status or an error body with a
status below 400.
"""

from __future__ import annotations

from typing import Any, Generic, Mapping, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette import status

__all__ = [
    "SuccessEnvelope",
    "ErrorBody",
    "ErrorEnvelope",
    "success_response",
    "error_response",
    "server_error_response",
]

T = TypeVar("T")


class SuccessEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class ErrorBody(BaseModel):
    message: str
    details: Optional[Any] = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: ErrorBody


def success_response(
    data: Any = None,
    status_code: int = status.HTTP_200_OK,
    message: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    if not 200 <= status_code < 300:
        raise ValueError(f"success envelope requires a 2xx status, got {status_code}")
    body: dict[str, Any] = {"success": True, "data": jsonable_encoder(data)}
    if message is not None:
        body["message"] = message
    if meta is not None:
        body["meta"] = jsonable_encoder(meta)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def error_response(
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: Optional[Any] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    if status_code < 400:
        raise ValueError(f"error envelope requires a 4xx/5xx status, got {status_code}")
    error: dict[str, Any] = {"message": message}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


def server_error_response(
    message: str = "Internal Server Error", details: Optional[Any] = None
) -> JSONResponse:
    """Error envelope for unexpected failures; the status is always 500."""
    return error_response(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)
