"""
Custom Exception Classes for the Talent Match API
"""
from typing import Dict, Any
from fastapi import HTTPException


class TalentMatchBaseException(Exception):
    """Base exception for the Talent Match API"""

    def __init__(
        self,
        message: str,
        error_code: str = None,
        details: Dict[str, Any] = None,
        cause: Exception = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/response"""
        result = {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class ValidationError(TalentMatchBaseException):
    """Raised when request data validation fails"""

    def __init__(self, message: str, field: str = None, value: Any = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if field:
            details['field'] = field
        if value is not None:
            details['invalid_value'] = str(value)
        super().__init__(message, error_code="VALIDATION_ERROR", details=details, **kwargs)


class NotFoundError(TalentMatchBaseException):
    """Raised when a requested job, candidate or match does not exist"""

    def __init__(self, message: str, resource: str = None, resource_id: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if resource:
            details['resource'] = resource
        if resource_id:
            details['resource_id'] = resource_id
        super().__init__(message, error_code="NOT_FOUND", details=details, **kwargs)


class FetchError(TalentMatchBaseException):
    """Raised when the candidate population or a skill list cannot be retrieved"""

    def __init__(self, message: str, collection: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="FETCH_FAILED", details=details, **kwargs)


class PersistError(TalentMatchBaseException):
    """Raised when computed matches cannot be saved"""

    def __init__(self, message: str, job_id: str = None, record_count: int = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if job_id:
            details['job_id'] = job_id
        if record_count is not None:
            details['record_count'] = record_count
        super().__init__(message, error_code="SAVE_FAILED", details=details, **kwargs)


class DatabaseError(TalentMatchBaseException):
    """Raised when database operations fail"""

    def __init__(self, message: str, operation: str = None, collection: str = None, **kwargs):
        details = kwargs.pop('details', None) or {}
        if operation:
            details['operation'] = operation
        if collection:
            details['collection'] = collection
        super().__init__(message, error_code="DATABASE_ERROR", details=details, **kwargs)


def map_to_http_exception(exc: TalentMatchBaseException) -> HTTPException:
    """Map custom exceptions to HTTP exceptions"""

    status_code_mapping = {
        ValidationError: 400,
        NotFoundError: 404,
        FetchError: 502,
        PersistError: 502,
        DatabaseError: 500,
    }

    status_code = status_code_mapping.get(type(exc), 500)

    detail = {
        "error": exc.to_dict(),
        "message": exc.message
    }

    return HTTPException(status_code=status_code, detail=detail)


class ExceptionContext:
    """Context manager for handling exceptions with additional context"""

    def __init__(self, operation: str, logger=None, **context):
        self.operation = operation
        self.logger = logger
        self.context = context

    def __enter__(self):
        if self.logger:
            self.logger.debug(f"Starting operation: {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            if self.logger:
                self.logger.debug(f"Operation completed: {self.operation}", extra=self.context)
            return False

        # HTTPException and our own hierarchy pass through untouched
        if isinstance(exc_val, (TalentMatchBaseException, HTTPException)):
            return False

        if self.logger:
            self.logger.error(
                f"Operation failed: {self.operation} - {exc_val}",
                extra={**self.context, "exception_type": exc_type.__name__}
            )

        if isinstance(exc_val, (KeyError, ValueError, TypeError)):
            raise ValidationError(
                f"Validation error in {self.operation}: {str(exc_val)}",
                details=dict(self.context),
                cause=exc_val
            ) from exc_val

        raise DatabaseError(
            f"Database error in {self.operation}: {str(exc_val)}",
            operation=self.operation,
            details=dict(self.context),
            cause=exc_val
        ) from exc_val
