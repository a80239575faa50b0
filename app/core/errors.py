"""Error taxonomy and error-to-response mapping."""
import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import exc as sa_exc

from app.core.config import settings

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."

# PostgreSQL SQLSTATE codes
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
NOT_NULL_VIOLATION = "23502"


class AppError(Exception):
    """Base application error carrying an HTTP status and a stable code."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = "INTERNAL_ERROR",
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class ValidationError(AppError):
    """Bad or missing input."""

    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message, 400, "VALIDATION_ERROR")
        self.fields = fields


class NotFoundError(AppError):
    """Unknown identifier."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", 404, "NOT_FOUND")
        self.resource = resource


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, 401, "UNAUTHORIZED")


class ForbiddenError(AppError):
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, 403, "FORBIDDEN")


class ConflictError(AppError):
    def __init__(self, message: str = "This record already exists"):
        super().__init__(message, 409, "DUPLICATE_ENTRY")


class InvalidReferenceError(AppError):
    def __init__(self, message: str = "Invalid reference"):
        super().__init__(message, 400, "INVALID_REFERENCE")


class ServiceUnavailableError(AppError):
    def __init__(
        self, message: str = "Service temporarily unavailable. Please try again later."
    ):
        super().__init__(message, 503, "SERVICE_UNAVAILABLE")


def _sqlstate(error: BaseException) -> Optional[str]:
    """Find a SQLSTATE code on a DBAPI error or on the driver error it wraps."""
    orig = getattr(error, "orig", None)
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "sqlstate", None) or getattr(candidate, "pgcode", None)
        if code:
            return str(code)
    return None


def classify_db_error(error: BaseException) -> AppError:
    """
    Map a datastore failure onto the error taxonomy.

    Returns the classified error; callers raise it.
    """
    if isinstance(error, AppError):
        return error

    if isinstance(error, sa_exc.NoResultFound):
        return NotFoundError("Record")

    if isinstance(error, sa_exc.IntegrityError):
        code = _sqlstate(error)
        text = str(getattr(error, "orig", error))
        if code == UNIQUE_VIOLATION or "UNIQUE constraint failed" in text:
            return ConflictError()
        if code == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in text:
            return InvalidReferenceError()
        if code == NOT_NULL_VIOLATION or "NOT NULL constraint failed" in text:
            return ValidationError("Missing required value")
        return AppError("Database operation failed", 500, "DATABASE_ERROR")

    if isinstance(
        error,
        (
            sa_exc.OperationalError,
            sa_exc.InterfaceError,
            sa_exc.DisconnectionError,
            sa_exc.TimeoutError,
            TimeoutError,
            ConnectionError,
        ),
    ):
        return ServiceUnavailableError()

    return AppError("Database operation failed", 500, "DATABASE_ERROR")


def sanitize_error(
    error: BaseException, production: Optional[bool] = None
) -> Tuple[int, Dict[str, Any]]:
    """Build the client-facing status code and body for an error."""
    if production is None:
        production = settings.is_production

    if isinstance(error, sa_exc.SQLAlchemyError):
        error = classify_db_error(error)

    if isinstance(error, AppError):
        body: Dict[str, Any] = {"error": error.message, "code": error.code}
        if isinstance(error, ValidationError) and error.fields:
            body["fields"] = error.fields
        return error.status_code, body

    message = GENERIC_MESSAGE if production else str(error) or GENERIC_MESSAGE
    return 500, {"error": message, "code": "INTERNAL_ERROR"}


async def app_error_handler(request: Request, error: AppError) -> JSONResponse:
    status_code, body = sanitize_error(error)
    log = logger.error if status_code >= 500 else logger.info
    log(
        f"[ERROR] {request.method} {request.url.path} -> {status_code} "
        f"{error.code}: {error.message}",
        exc_info=status_code >= 500,
    )
    return JSONResponse(status_code=status_code, content=body)


async def database_error_handler(
    request: Request, error: sa_exc.SQLAlchemyError
) -> JSONResponse:
    logger.error(
        f"[ERROR] Datastore failure on {request.method} {request.url.path} - "
        f"{type(error).__name__}: {error}",
        exc_info=True,
    )
    status_code, body = sanitize_error(classify_db_error(error))
    return JSONResponse(status_code=status_code, content=body)


async def request_validation_handler(
    request: Request, error: RequestValidationError
) -> JSONResponse:
    fields = {}
    for item in error.errors():
        location = [str(part) for part in item.get("loc", ()) if part != "body"]
        fields[".".join(location) or "body"] = item.get("msg", "Invalid value")
    logger.info(f"[ERROR] Invalid request on {request.method} {request.url.path}: {fields}")
    status_code, body = sanitize_error(ValidationError("Invalid request", fields=fields))
    return JSONResponse(status_code=status_code, content=body)


async def unhandled_error_handler(request: Request, error: Exception) -> JSONResponse:
    logger.error(
        f"[ERROR] Unhandled error on {request.method} {request.url.path} - "
        f"{type(error).__name__}: {error}",
        exc_info=error,
    )
    status_code, body = sanitize_error(error)
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error handlers on the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(sa_exc.SQLAlchemyError, database_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
