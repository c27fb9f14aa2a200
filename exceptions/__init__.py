"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    ValidationError,
    ExternalServiceError,

    # Catalog
    CatalogFetchError,
    CatalogEmptyError,

    # Upload
    CSVParseError,
    EmptyUploadError,
)

__all__ = [
    # Base
    "AppError",
    "ValidationError",
    "ExternalServiceError",

    # Catalog
    "CatalogFetchError",
    "CatalogEmptyError",

    # Upload
    "CSVParseError",
    "EmptyUploadError",
]
