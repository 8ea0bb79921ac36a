"""Unified API error responses: the only place error kinds become HTTP statuses."""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dealdesk.core.config import settings
from dealdesk.core.errors import DealError, ErrorKind
from dealdesk.core.logging import get_logger
from dealdesk.schemas.deal import ErrorResponse

logger = get_logger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
    ErrorKind.UNAVAILABLE: 503,
}

GENERIC_INTERNAL_MESSAGE = "Internal server error"


def build_error_payload(*, kind: ErrorKind, message: str) -> dict[str, object]:
    return ErrorResponse(error=kind.value, message=message).model_dump()


def error_response(kind: ErrorKind, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND[kind],
        content=build_error_payload(kind=kind, message=message),
        headers=headers,
    )


def internal_message(detail: str | None) -> str:
    """Detailed in development, generic in production."""
    if settings.is_production or not detail:
        return GENERIC_INTERNAL_MESSAGE
    return detail


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path")]
        field = ".".join(loc) or "request"
        parts.append(f"{field}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


async def deal_error_handler(request: Request, exc: DealError) -> JSONResponse:
    logger.info("Request rejected", kind=exc.kind.value, path=request.url.path, error=exc.message)
    message = exc.message
    if exc.kind is ErrorKind.INTERNAL:
        message = internal_message(exc.detail)
    return error_response(exc.kind, message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(ErrorKind.VALIDATION, _describe_validation(exc))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(ErrorKind.NOT_FOUND, "Route not found")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": "http_error", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DealError, deal_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
