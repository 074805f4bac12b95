"""Canonical API error envelope and exception mapping."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from rtspview.errors import CameraNotFoundError, InvalidStreamUrlError, SettingsStoreError

logger = logging.getLogger(__name__)

# Named differently across Starlette releases.
_HTTP_422_UNPROCESSABLE = 422


class APIErrorCode(StrEnum):
    """Stable API error codes for non-2xx responses."""

    APP_NOT_INITIALIZED = "APP_NOT_INITIALIZED"
    CAMERA_NOT_FOUND = "CAMERA_NOT_FOUND"
    INVALID_STREAM_URL = "INVALID_STREAM_URL"
    SETTINGS_STORE_FAILED = "SETTINGS_STORE_FAILED"
    REQUEST_VALIDATION_FAILED = "REQUEST_VALIDATION_FAILED"
    BAD_REQUEST = "BAD_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


_STATUS_TO_DEFAULT_CODE: dict[int, APIErrorCode] = {
    status.HTTP_400_BAD_REQUEST: APIErrorCode.BAD_REQUEST,
    status.HTTP_404_NOT_FOUND: APIErrorCode.NOT_FOUND,
    status.HTTP_503_SERVICE_UNAVAILABLE: APIErrorCode.SERVICE_UNAVAILABLE,
}


class APIErrorResponse(BaseModel):
    """Canonical error envelope returned by API routes."""

    detail: str
    error_code: str


class APIError(RuntimeError):
    """Typed API exception mapped to the canonical error envelope."""

    def __init__(
        self,
        detail: str,
        *,
        status_code: int,
        error_code: str | APIErrorCode,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(detail)
        self.status_code = status_code
        self.error_code = str(error_code)
        self.extra = extra


def _error_payload(
    detail: str,
    error_code: str,
    *,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    payload = APIErrorResponse(detail=detail, error_code=error_code).model_dump(mode="json")
    if extra:
        payload.update(extra)
    return payload


def _error_response(
    status_code: int,
    detail: str,
    error_code: str | APIErrorCode,
    *,
    extra: dict[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(detail, str(error_code), extra=extra),
        headers=dict(headers) if headers is not None else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register canonical API error handlers."""

    @app.exception_handler(APIError)
    async def _api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        _ = request
        return _error_response(exc.status_code, str(exc), exc.error_code, extra=exc.extra)

    @app.exception_handler(CameraNotFoundError)
    async def _camera_not_found_handler(request: Request, exc: CameraNotFoundError) -> JSONResponse:
        _ = request
        return _error_response(
            status.HTTP_404_NOT_FOUND,
            str(exc),
            APIErrorCode.CAMERA_NOT_FOUND,
            extra={"camera_id": exc.camera_id},
        )

    @app.exception_handler(InvalidStreamUrlError)
    async def _invalid_url_handler(request: Request, exc: InvalidStreamUrlError) -> JSONResponse:
        _ = request
        return _error_response(
            _HTTP_422_UNPROCESSABLE,
            exc.reason,
            APIErrorCode.INVALID_STREAM_URL,
        )

    @app.exception_handler(SettingsStoreError)
    async def _store_error_handler(request: Request, exc: SettingsStoreError) -> JSONResponse:
        logger.error("Settings store failure for path=%s: %s", request.url.path, exc, exc_info=exc)
        return _error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            str(exc),
            APIErrorCode.SETTINGS_STORE_FAILED,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        _ = request
        return _error_response(
            _HTTP_422_UNPROCESSABLE,
            "Request validation failed",
            APIErrorCode.REQUEST_VALIDATION_FAILED,
            extra={"validation_errors": exc.errors()},
        )

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        _ = request
        code = _STATUS_TO_DEFAULT_CODE.get(exc.status_code, APIErrorCode.HTTP_ERROR)
        return _error_response(exc.status_code, str(exc.detail), code, headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        _ = request
        code = _STATUS_TO_DEFAULT_CODE.get(exc.status_code, APIErrorCode.HTTP_ERROR)
        return _error_response(exc.status_code, str(exc.detail), code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled API exception for path=%s", request.url.path, exc_info=exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            APIErrorCode.INTERNAL_SERVER_ERROR,
        )
