"""
Custom exception classes for the application.

Every error carries a machine-readable code, a message and an HTTP status,
and renders to the standard {"error": {...}} response body.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "CATALOG_EMPTY")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class CatalogFetchError(ExternalServiceError):
    """Reading the reference catalog failed. Fatal to a verification run."""

    def __init__(self, operation: str, message: str):
        super().__init__(
            service="catalog",
            message=f"Catalog {operation} failed: {message}",
            details={"operation": operation}
        )


class CatalogEmptyError(AppError):
    """No catalog data available to verify against."""

    def __init__(self, table: str = "catalog"):
        super().__init__(
            code="CATALOG_EMPTY",
            message="No catalog data found.",
            status_code=503,
            details={"table": table}
        )


# ===================
# UPLOAD ERRORS
# ===================

class CSVParseError(ValidationError):
    """Uploaded CSV could not be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="CSV_PARSE_ERROR",
            message=message,
            details=details
        )


class EmptyUploadError(ValidationError):
    """Upload contained no data rows."""

    def __init__(self, filename: Optional[str] = None):
        super().__init__(
            code="EMPTY_UPLOAD",
            message="Upload contains no rows to verify",
            details={"filename": filename} if filename else None
        )
