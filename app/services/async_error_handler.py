"""
Async error handling utilities for service operations.

Domain failures are raised as `HTTPException` and pass through untouched;
anything else raised inside a service call is logged, the session is rolled
back, and a generic client-facing message is raised instead.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import (
    DataError,
    DatabaseError,
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    StatementError,
    TimeoutError as SQLTimeoutError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.logger import PivotLogger

logger = logging.getLogger(__name__)


class AsyncErrorHandler:
    """
    Error classifier for database operations.

    Maps SQLAlchemy errors to HTTP status codes and client-safe messages.
    """

    # Order matters: subclasses before DatabaseError
    ERROR_MAPPINGS = {
        IntegrityError: {
            'status_code': status.HTTP_409_CONFLICT,
            'detail': 'Data integrity constraint violation',
        },
        SQLTimeoutError: {
            'status_code': status.HTTP_504_GATEWAY_TIMEOUT,
            'detail': 'Database operation timed out',
        },
        DisconnectionError: {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database connection lost',
        },
        OperationalError: {
            'status_code': status.HTTP_503_SERVICE_UNAVAILABLE,
            'detail': 'Database operation failed',
        },
        DataError: {
            'status_code': status.HTTP_400_BAD_REQUEST,
            'detail': 'Invalid data format',
        },
        DatabaseError: {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'Database error occurred',
        },
        StatementError: {
            'status_code': status.HTTP_400_BAD_REQUEST,
            'detail': 'Invalid database query',
        },
    }

    @classmethod
    def classify_error(cls, error: Exception) -> Dict[str, Any]:
        """
        Classify an error and return `status_code` and `detail` for it.

        Unknown errors map to 500 with a message that does not leak internals.
        """
        for exc_type, mapping in cls.ERROR_MAPPINGS.items():
            if isinstance(error, exc_type):
                return mapping.copy()

        return {
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'detail': 'An unexpected database error occurred',
        }

    @classmethod
    def handle_error(cls, error: Exception, operation_name: str = "database operation") -> HTTPException:
        """Log `error` and build the matching HTTPException."""
        error_info = cls.classify_error(error)
        logger.error(f"Error in {operation_name}: {error}")
        return HTTPException(
            status_code=error_info['status_code'],
            detail=error_info['detail'],
        )

    @staticmethod
    def is_unique_violation(error: Exception) -> bool:
        """True for integrity errors raised by a unique index or constraint."""
        if not isinstance(error, IntegrityError):
            return False
        message = str(error.orig).lower() if error.orig is not None else str(error).lower()
        return "unique" in message or "duplicate key" in message


@asynccontextmanager
async def handle_service_errors(
    db: Optional[AsyncSession],
    service_logger: PivotLogger,
    detail: str,
    context: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    **log_fields: Any,
):
    """
    Wrap a service operation.

    `HTTPException` passes through unchanged. Any other exception is logged
    with `log_fields`, the session is rolled back, and an `HTTPException`
    carrying `detail` is raised in its place.

    Usage:
        async with handle_service_errors(db, urge_logger, "Failed to log urge", "CREATE"):
            ...
    """
    try:
        yield
    except HTTPException:
        raise
    except Exception as e:
        service_logger.error(f"{detail}: {e}", context, exc_info=True, error=type(e).__name__, **log_fields)
        if db is not None:
            try:
                await db.rollback()
            except SQLAlchemyError as rollback_error:
                logger.warning(f"Rollback after failure in '{context}' also failed: {rollback_error}")
        raise HTTPException(status_code=status_code, detail=detail) from e
