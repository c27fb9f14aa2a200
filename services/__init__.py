"""
Business logic services.

Each service handles one domain area.
"""

from services.catalog_service import CatalogService, get_catalog_service
from services.verification_service import VerificationService, get_verification_service
from services.export_service import ExportService, get_export_service
from services.diagnostics import MatchReporter, LoggingReporter, NullReporter

__all__ = [
    "CatalogService",
    "get_catalog_service",
    "VerificationService",
    "get_verification_service",
    "ExportService",
    "get_export_service",
    "MatchReporter",
    "LoggingReporter",
    "NullReporter",
]
