"""Request-id propagation, request logging, and JSON error rendering."""

from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.exceptions import HTTPException as StarletteHTTPException

from payroll.core.config import settings
from payroll.core.errors import PayrollError
from payroll.core.logging import get_logger

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
_HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
_MAX_REQUEST_ID_LENGTH = 128


def _json_safe(value: object) -> object:
    """Coerce validation-error context into JSON-serializable values."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_json_safe(item) for item in value]
    return str(value)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(
    *,
    detail: object,
    request_id: str | None,
    code: str | None = None,
    retryable: bool | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if request_id is not None:
        payload["request_id"] = request_id
    if code is not None:
        payload["code"] = code
    if retryable is not None:
        payload["retryable"] = retryable
    return payload


def _json_response(
    request: Request,
    *,
    status_code: int,
    detail: object,
    code: str | None = None,
    retryable: bool | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    request_id = _get_request_id(request)
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(
            detail=detail,
            request_id=request_id,
            code=code,
            retryable=retryable,
        ),
        headers=response_headers,
    )


async def _payroll_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, PayrollError):
        msg = "Expected PayrollError"
        raise TypeError(msg)
    logger.info(
        "http.request.domain_error code=%s status=%s path=%s",
        exc.code,
        exc.status_code,
        request.url.path,
    )
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=exc.message,
        code=exc.code,
        retryable=exc.retryable,
    )


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=_json_safe(exc.errors()),
    )


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    logger.error("http.response.invalid path=%s errors=%s", request.url.path, exc.errors())
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=exc.detail,
        headers=exc.headers,
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "http.request.unhandled path=%s",
        request.url.path,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    return _json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal Server Error",
    )


def _resolve_request_id(scope: Scope) -> str:
    for key, value in scope.get("headers", []):
        if key.decode("latin-1").lower() == REQUEST_ID_HEADER.lower():
            candidate = value.decode("latin-1").strip()
            if candidate:
                return candidate[:_MAX_REQUEST_ID_LENGTH]
    return uuid4().hex


class RequestContextMiddleware:
    """Assign a request id, echo it on responses, and log request timing."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = _resolve_request_id(scope)
        scope.setdefault("state", {})["request_id"] = request_id
        path = scope.get("path", "")
        method = scope.get("method", "")
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        started = perf_counter()

        async def send_with_request_id(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableHeaders(scope=message)
                headers[REQUEST_ID_HEADER] = request_id
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            if path not in _HEALTH_PATHS or settings.request_log_include_health:
                elapsed_ms = (perf_counter() - started) * 1000
                extra = {
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": round(elapsed_ms, 2),
                }
                logger.info("http.request.completed", extra=extra)
                threshold = settings.request_log_slow_ms
                if threshold and elapsed_ms >= threshold:
                    logger.warning(
                        "http.request.slow",
                        extra={**extra, "slow_threshold_ms": threshold},
                    )


def install_error_handling(app: FastAPI) -> None:
    """Attach request-id middleware and JSON exception handlers to an app."""
    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(PayrollError, _payroll_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
