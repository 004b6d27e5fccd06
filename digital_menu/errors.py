"""
API Error Handling

Every failure leaves the API in the same envelope:

    {"success": false, "error": {"code": "...", "message": "...", "details": ...}}

Handlers and dependencies raise ``ApiError`` for conditions they check
explicitly. Anything else is funnelled by the registered exception
handlers into a generic 500 without leaking internals.
"""

import logging
from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Symbolic error codes returned to clients."""
    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # Authentication & authorization
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    PLAN_LIMIT_REACHED = "PLAN_LIMIT_REACHED"
    FEATURE_NOT_AVAILABLE = "FEATURE_NOT_AVAILABLE"

    # Resources
    NOT_FOUND = "NOT_FOUND"
    MENU_NOT_FOUND = "MENU_NOT_FOUND"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    PRODUCT_NOT_FOUND = "PRODUCT_NOT_FOUND"
    VARIATION_NOT_FOUND = "VARIATION_NOT_FOUND"
    PROMOTION_NOT_FOUND = "PROMOTION_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Conflicts
    ALREADY_EXISTS = "ALREADY_EXISTS"
    EMAIL_EXISTS = "EMAIL_EXISTS"
    SLUG_EXISTS = "SLUG_EXISTS"

    # Server
    UPLOAD_ERROR = "UPLOAD_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ApiError(Exception):
    """
    An expected, client-facing failure.

    Attributes:
        code: Symbolic error code
        message: Human readable message
        status_code: HTTP status to respond with
        details: Optional structured detail (field errors, offending ids)
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details

    @classmethod
    def not_found(cls, code: ErrorCode, message: str) -> "ApiError":
        return cls(code, message, status_code=404)

    @classmethod
    def forbidden(cls, message: str, code: ErrorCode = ErrorCode.FORBIDDEN) -> "ApiError":
        return cls(code, message, status_code=403)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> "ApiError":
        return cls(ErrorCode.UNAUTHORIZED, message, status_code=401)

    @classmethod
    def validation(cls, message: str, details: Optional[Any] = None) -> "ApiError":
        return cls(ErrorCode.VALIDATION_ERROR, message, status_code=400, details=details)


def error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Any] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    error: dict[str, Any] = {"code": code.value, "message": message}
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


def format_validation_errors(errors: list[dict]) -> dict[str, list[str]]:
    """
    Flatten pydantic errors into ``{field: [messages]}``.

    The field is the first location segment after the request part
    (``body``, ``query``, ``path``) so nested errors report on their
    top-level field.
    """
    field_errors: dict[str, list[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        if loc and loc[0] in ("body", "query", "path", "header", "form"):
            loc = loc[1:]
        field = loc[0] if loc else "_root"
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        field_errors.setdefault(field, []).append(message)
    return field_errors


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

def register_exception_handlers(app: FastAPI, debug: bool = False) -> None:
    """Attach the envelope-producing handlers to the application."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code.value} {exc.message}")
        return error_response(exc.code, exc.message, exc.status_code, exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request data",
            400,
            format_validation_errors(exc.errors()),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        code = ErrorCode.NOT_FOUND if exc.status_code == 404 else ErrorCode.INVALID_INPUT
        if exc.status_code == 401:
            code = ErrorCode.UNAUTHORIZED
        elif exc.status_code == 403:
            code = ErrorCode.FORBIDDEN
        elif exc.status_code >= 500:
            code = ErrorCode.INTERNAL_ERROR
        return error_response(
            code,
            str(exc.detail),
            exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return error_response(
            ErrorCode.ALREADY_EXISTS,
            "A record with these values already exists",
            409,
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception(f"Database error on {request.method} {request.url.path}: {exc}")
        return error_response(
            ErrorCode.DATABASE_ERROR,
            "A database error occurred",
            500,
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return error_response(
            ErrorCode.INTERNAL_ERROR,
            str(exc) if debug else "An unexpected error occurred",
            500,
        )
