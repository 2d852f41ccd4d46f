"""Storefront error taxonomy and its HTTP translation.

Persistence failures are translated into these classes at the service
boundary with :func:`translate_db_error`; raw driver messages are logged but
never returned to clients. Every class carries a generic ``message`` that is
safe to render as a user-facing toast.

Usage:
    from libs.common.errors import NotFound, translate_db_error

    try:
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise translate_db_error(exc, "create_tag") from exc
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger

logger = get_logger(__name__)

# PostgreSQL SQLSTATE codes we map explicitly
UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"
INSUFFICIENT_PRIVILEGE = "42501"


class StoreError(Exception):
    """Base class for every error surfaced to storefront clients."""

    code = "UNKNOWN_ERROR"
    status_code = 500
    message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, *, operation: Optional[str] = None):
        self.message = message or self.message
        self.operation = operation
        super().__init__(self.message)


class Unauthenticated(StoreError):
    code = "UNAUTHENTICATED"
    status_code = 401
    message = "Please sign in to continue."


class NotFound(StoreError):
    code = "NOT_FOUND"
    status_code = 404
    message = "The requested item was not found."


class DuplicateEntry(StoreError):
    code = "DUPLICATE_ENTRY"
    status_code = 409
    message = "This item already exists."


class ForeignKeyViolation(StoreError):
    code = "FOREIGN_KEY_VIOLATION"
    status_code = 400
    message = "This item is referenced by other records."


class PermissionDenied(StoreError):
    code = "PERMISSION_DENIED"
    status_code = 403
    message = "You don't have permission to perform this action."


class ValidationError(StoreError):
    code = "VALIDATION_ERROR"
    status_code = 400
    message = "Please check your input and try again."


class NetworkError(StoreError):
    code = "NETWORK_ERROR"
    status_code = 503
    message = "Network error. Please check your connection and try again."


class UnknownError(StoreError):
    pass


# Domain-specific validation failures


class EmptyCart(ValidationError):
    code = "EMPTY_CART"
    message = "Your cart is empty."


class InsufficientStock(ValidationError):
    code = "INSUFFICIENT_STOCK"
    message = "Some items in your cart are no longer in stock."


class OrderNotCancellable(ValidationError):
    code = "ORDER_CANNOT_BE_CANCELLED"
    message = "This order can no longer be cancelled."


class OrderAlreadyCancelled(ValidationError):
    code = "ORDER_ALREADY_CANCELLED"
    message = "This order has already been cancelled."


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    # psycopg 3 exposes ``sqlstate``; psycopg2 exposes ``pgcode``
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def translate_db_error(exc: BaseException, operation: str) -> StoreError:
    """Map a persistence exception onto the storefront taxonomy and log it."""
    if isinstance(exc, StoreError):
        return exc

    error: StoreError
    if isinstance(exc, DBAPIError):
        sqlstate = _sqlstate(exc)
        detail = str(getattr(exc, "orig", exc))
        if sqlstate == UNIQUE_VIOLATION or "UNIQUE constraint failed" in detail:
            error = DuplicateEntry(operation=operation)
        elif sqlstate == FOREIGN_KEY_VIOLATION or "FOREIGN KEY constraint failed" in detail:
            error = ForeignKeyViolation(operation=operation)
        elif sqlstate == INSUFFICIENT_PRIVILEGE:
            error = PermissionDenied(operation=operation)
        elif isinstance(exc, IntegrityError):
            error = ValidationError(operation=operation)
        elif isinstance(exc, OperationalError) or exc.connection_invalidated:
            error = NetworkError(operation=operation)
        else:
            error = UnknownError(operation=operation)
    elif isinstance(exc, (ConnectionError, TimeoutError, OSError)):
        error = NetworkError(operation=operation)
    else:
        error = UnknownError(operation=operation)

    log_error(operation, exc, translated=error)
    return error


def log_error(
    operation: str, exc: BaseException, translated: Optional[StoreError] = None
) -> None:
    """Log a failure with its operation name and a UTC timestamp."""
    code = translated.code if translated else getattr(exc, "code", type(exc).__name__)
    logger.error(
        "Operation %s failed: %s",
        operation,
        type(exc).__name__,
        extra={
            "extra_fields": {
                "operation": operation,
                "error_code": code,
                "timestamp": utc_now().isoformat(),
            }
        },
        exc_info=not isinstance(exc, StoreError),
    )


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    if exc.status_code >= 500:
        log_error(exc.operation or request.url.path, exc)
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": UnknownError.message, "code": UnknownError.code},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the storefront error handlers on ``app``."""
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


async def _sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    error = translate_db_error(exc, request.url.path)
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
    )
