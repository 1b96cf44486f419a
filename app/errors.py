"""Domain error taxonomy and the JSON error envelope.

Services raise these exactly where they would raise ``HTTPException``; the
handlers registered here render every failure as
``{"success": false, "message": ..., "error": ..., "code": ...}``.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class WarehouseError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ERROR"

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(status_code=status_code or self.status_code, detail=detail)


class ValidationError(WarehouseError):
    code = "VALIDATION_ERROR"


class NotFoundError(WarehouseError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class InvalidStateError(WarehouseError):
    code = "INVALID_STATE"


class ConflictError(WarehouseError):
    code = "CONFLICT"


def _envelope(message: str, code: str, error: str | None = None, errors: list | None = None) -> dict:
    body: dict = {"success": False, "message": message, "code": code}
    if error is not None:
        body["error"] = error
    if errors:
        body["errors"] = errors
    return body


async def _warehouse_error_handler(_request: Request, exc: WarehouseError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_envelope(exc.detail, exc.code))


async def _http_error_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(detail, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body") or "unknown",
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("Validation failed", ValidationError.code, errors=errors),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("Internal server error", "INTERNAL_ERROR", error=str(exc)),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WarehouseError, _warehouse_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
