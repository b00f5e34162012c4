from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


def error_body(status_code: int, message: str, *, code: str | None = None, details=None) -> dict:
    body = {
        "success": False,
        "error": message,
        "code": code or ERROR_CODES.get(status_code, "ERROR"),
    }
    if details is not None:
        body["details"] = details
    return body


# SQLSTATE codes from psycopg2, message fragments from sqlite
_UNIQUE_PGCODE = "23505"
_UNIQUE_MARKERS = ("unique constraint", "duplicate key")
_FOREIGN_KEY_PGCODE = "23503"
_FOREIGN_KEY_MARKER = "foreign key constraint"


def classify_integrity_error(exc: IntegrityError) -> tuple[int, str, str]:
    """Status, message and code for a database constraint failure."""
    pgcode = getattr(exc.orig, "pgcode", None) or ""
    text = str(exc.orig).lower()
    if pgcode == _UNIQUE_PGCODE or any(marker in text for marker in _UNIQUE_MARKERS):
        return status.HTTP_409_CONFLICT, "Unique constraint violation", "DUPLICATE_ENTRY"
    if pgcode == _FOREIGN_KEY_PGCODE or _FOREIGN_KEY_MARKER in text:
        return status.HTTP_409_CONFLICT, "Record is referenced by other data", "CONFLICT"
    return status.HTTP_400_BAD_REQUEST, "Invalid data for a required field", "VALIDATION_ERROR"


def _user_context(request: Request) -> tuple[int | None, int | None]:
    user = getattr(request.state, "user", None)
    return getattr(user, "id", None), getattr(user, "company_id", None)


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
                "message": error.get("msg"),
            }
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(
                error_body(status.HTTP_400_BAD_REQUEST, "Invalid request data", details=details)
            ),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        user_id, company_id = _user_context(request)
        logger.warning(
            "Integrity error endpoint=%s %s user_id=%s company_id=%s error=%s",
            request.method,
            request.url.path,
            user_id,
            company_id,
            exc.orig,
        )
        status_code, message, code = classify_integrity_error(exc)
        return JSONResponse(status_code=status_code, content=error_body(status_code, message, code=code))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        user_id, company_id = _user_context(request)
        logger.exception(
            "Unhandled error endpoint=%s %s user_id=%s company_id=%s",
            request.method,
            request.url.path,
            user_id,
            company_id,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Internal server error",
                code="INTERNAL_ERROR",
            ),
        )
