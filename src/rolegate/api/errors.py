"""
rolegate.api.errors

Error envelope handlers.

Responsibilities:
- Map `RoleGateError` subclasses to their status and `{"success": false, "error": ...}`.
- Give request-validation, routing and unexpected errors the same envelope.
- Keep internal details (SQL, constraint names, tracebacks) in logs only.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_400_BAD_REQUEST, HTTP_500_INTERNAL_SERVER_ERROR

from rolegate.errors import RoleGateError
from rolegate.observability.logging import get_logger

log = get_logger(__name__)


def envelope(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, **extra},
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RoleGateError)
    async def _app_error(request: Request, exc: RoleGateError) -> JSONResponse:
        if exc.status_code >= 500:
            log.error("store_error", error=exc.message, context=exc.context)
        elif exc.context:
            log.info(
                "request_denied", status=exc.status_code, error=exc.message, context=exc.context
            )
        return envelope(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return envelope(HTTP_400_BAD_REQUEST, "invalid request", fields=fields)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return envelope(exc.status_code, str(exc.detail).lower())

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        log.exception("unhandled_error")
        return envelope(HTTP_500_INTERNAL_SERVER_ERROR, "internal error")


# --- Module Notes -----------------------------------------------------------
# Routers raise `rolegate.errors` exceptions and never build error JSON themselves.
