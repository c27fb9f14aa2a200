"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, SnapshotSchema
from models.catalog import CatalogRecord
from models.verification import (
    CanonicalField,
    CORE_CANONICAL_FIELDS,
    OPTIONAL_CANONICAL_FIELDS,
    VerificationStatus,
    MatchSource,
    CanonicalFieldSet,
    UploadRow,
    FieldMismatch,
    MatchResult,
    VerificationSummary,
    VerificationRun,
    VerificationRowResponse,
    VerificationRunResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "SnapshotSchema",

    # Catalog
    "CatalogRecord",

    # Verification
    "CanonicalField",
    "CORE_CANONICAL_FIELDS",
    "OPTIONAL_CANONICAL_FIELDS",
    "VerificationStatus",
    "MatchSource",
    "CanonicalFieldSet",
    "UploadRow",
    "FieldMismatch",
    "MatchResult",
    "VerificationSummary",
    "VerificationRun",
    "VerificationRowResponse",
    "VerificationRunResponse",
]
