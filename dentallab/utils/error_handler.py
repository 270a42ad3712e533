"""
Ledger error types, the JSON error envelope, and a unit-of-work helper for jobs
"""

import uuid
import traceback
import logging
from typing import Optional
from datetime import datetime
from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

NUMBERING_CONFLICT_DETAIL = "Critical order numbering conflict. Please resubmit the order or contact support."
DATABASE_ERROR_DETAIL = "A database error occurred. Please try again later."
INTERNAL_ERROR_DETAIL = "An unexpected error occurred. Please try again later."


class DatabaseError(Exception):
    """A storage operation failed; the original SQLAlchemy error is kept for logs"""
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)


class NumberingConflictError(DatabaseError):
    """Two orders received the same order number; the counter invariant is broken"""
    pass


class ErrorContext:
    """Identifies one failed request in the response body, the log and the activity trail"""

    def __init__(self, request: Request):
        self.request_id = str(uuid.uuid4())
        self.endpoint = str(request.url.path)
        self.method = request.method
        self.client_ip = request.client.host if request.client else None
        self.timestamp = datetime.utcnow()


class ErrorHandler:
    """Builds the ``{"error": {...}}`` envelope returned for server-side failures"""

    @staticmethod
    def error_code(error: Exception) -> str:
        if isinstance(error, NumberingConflictError):
            return "ORDER_NUMBERING_CONFLICT"
        if isinstance(error, DatabaseError):
            return "DATABASE_ERROR"
        return "INTERNAL_ERROR"

    @staticmethod
    def user_message(error: Exception) -> str:
        # Storage details never reach the client
        if isinstance(error, NumberingConflictError):
            return NUMBERING_CONFLICT_DETAIL
        if isinstance(error, DatabaseError):
            return DATABASE_ERROR_DETAIL
        return INTERNAL_ERROR_DETAIL

    @staticmethod
    def create_error_response(
        error_context: ErrorContext,
        error: Exception,
        status_code: int = 500,
        include_details: bool = False
    ) -> JSONResponse:
        code = ErrorHandler.error_code(error)
        error_data = {
            "error": {
                "code": code,
                "message": ErrorHandler.user_message(error),
                "error_id": error_context.request_id,
                "timestamp": error_context.timestamp.isoformat(),
                "endpoint": error_context.endpoint,
                "method": error_context.method
            }
        }

        if include_details:
            error_data["error"]["details"] = {
                "original_error": str(error),
                "error_type": type(error).__name__,
                "stack_trace": traceback.format_exc()
            }

        logger.error(
            f"Error {error_context.request_id} ({code}) in {error_context.method} "
            f"{error_context.endpoint} from {error_context.client_ip}: {error}"
        )
        return JSONResponse(status_code=status_code, content=error_data)


class DatabaseManager:
    """Context manager for a self-contained unit of work outside request handling"""

    def __init__(self, db_session_factory):
        self.db_session_factory = db_session_factory
        self.db = None

    def __enter__(self) -> Session:
        try:
            self.db = self.db_session_factory()
            return self.db
        except Exception as e:
            raise DatabaseError(f"Failed to create database session: {str(e)}", e)

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.db:
            try:
                if exc_type is None:
                    self.db.commit()
                else:
                    self.db.rollback()
            except SQLAlchemyError as e:
                logger.error(f"Sweep transaction error: {e}")
                self.db.rollback()
                raise DatabaseError(f"Sweep transaction failed: {str(e)}", e)
            finally:
                self.db.close()
