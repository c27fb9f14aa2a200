"""
Verification schemas.

UploadRow and CanonicalFieldSet describe an uploaded inventory row,
MatchResult is the per-row verdict, and VerificationRun is the value object
returned by a complete run.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, computed_field

from models.base import BaseSchema, SnapshotSchema


class CanonicalField(str, Enum):
    """Canonical upload fields, valued by their display label."""
    UPC = "UPC"
    MANUFACTURER = "Manufacturer"
    MODEL = "Model"
    TYPE = "Type"
    CALIBER = "Caliber"
    IMPORTER = "Importer"
    COUNTRY = "Country"

    @property
    def attr(self) -> str:
        """Attribute name on CanonicalFieldSet / CatalogRecord."""
        return self.name.lower()


CORE_CANONICAL_FIELDS = (
    CanonicalField.MANUFACTURER,
    CanonicalField.MODEL,
    CanonicalField.TYPE,
    CanonicalField.CALIBER,
)

OPTIONAL_CANONICAL_FIELDS = (
    CanonicalField.IMPORTER,
    CanonicalField.COUNTRY,
)


class VerificationStatus(str, Enum):
    """Per-row verdict."""
    VERIFIED_IDENTIFIER = "VERIFIED (identifier & attribute match)"
    VERIFIED_ATTRIBUTES = "VERIFIED (attribute match)"
    NOT_VERIFIED = "NOT VERIFIED"
    NOT_VERIFIED_AMBIGUOUS = "NOT VERIFIED (ambiguous match)"
    UNKNOWN = "UNKNOWN"

    @property
    def is_verified(self) -> bool:
        return self.value.startswith("VERIFIED")


class MatchSource(str, Enum):
    """How the comparison target was located."""
    IDENTIFIER = "identifier"
    ATTRIBUTES = "attributes"
    CLOSEST = "closest"
    NONE = "none"


# ===================
# UPLOAD ROWS
# ===================

class CanonicalFieldSet(BaseSchema):
    """De-aliased view of an upload row. Values are raw, not normalized."""

    upc: str = ""
    manufacturer: str = ""
    model: str = ""
    type: str = ""
    caliber: str = ""
    importer: str = ""
    country: str = ""

    def get(self, field: CanonicalField) -> str:
        return getattr(self, field.attr)


class UploadRow(BaseSchema):
    """
    One uploaded inventory row.

    `values` keeps every original column (including unknown ones) for
    passthrough; `canonical` holds the alias-resolved fields.
    """

    index: int = Field(..., ge=0, description="Position in the uploaded file")
    values: dict[str, str] = Field(default_factory=dict)
    canonical: CanonicalFieldSet = Field(default_factory=CanonicalFieldSet)
    source_columns: dict[CanonicalField, Optional[str]] = Field(
        default_factory=dict,
        description="Header each canonical value was read from"
    )


# ===================
# RESULTS
# ===================

class FieldMismatch(BaseSchema):
    """Why one canonical field disagrees with the catalog."""

    expected: str = ""
    actual: str = ""
    reason: str


class MatchResult(BaseSchema):
    """Verdict for a single upload row."""

    row_index: int
    status: VerificationStatus
    mismatched_fields: list[CanonicalField] = Field(default_factory=list)
    field_meta: dict[CanonicalField, FieldMismatch] = Field(default_factory=dict)
    matched_by: MatchSource = MatchSource.NONE
    catalog_id: Optional[str] = None
    candidate_count: int = 0


class VerificationSummary(BaseSchema):
    """Counts per status for one run."""

    total: int = 0
    verified: int = 0
    not_verified: int = 0
    unknown: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_results(cls, results: list[MatchResult]) -> "VerificationSummary":
        by_status = {status.value: 0 for status in VerificationStatus}
        for result in results:
            by_status[result.status.value] += 1

        unknown = by_status[VerificationStatus.UNKNOWN.value]
        verified = sum(1 for r in results if r.status.is_verified)
        return cls(
            total=len(results),
            verified=verified,
            not_verified=len(results) - verified - unknown,
            unknown=unknown,
            by_status=by_status,
        )


STATUS_COLUMN = "Status"
FIELD_META_KEY = "field_meta"


class VerificationRun(SnapshotSchema):
    """
    Outcome of one verification run.

    Immutable once built. A new run replaces the previous one; nothing is
    shared between runs.
    """

    rows: list[UploadRow]
    results: list[MatchResult]
    catalog_size: int = 0
    started_at: datetime
    finished_at: datetime

    @computed_field
    @property
    def summary(self) -> VerificationSummary:
        return VerificationSummary.from_results(self.results)

    def to_rows(self, include_meta: bool = True) -> list[dict]:
        """
        Output rows: original columns, canonical columns, then Status.

        Upload columns pass through untouched. A canonical column is only
        added when the upload has no column with that label.
        """
        output = []
        for row, result in zip(self.rows, self.results):
            out: dict = dict(row.values)
            for field in CanonicalField:
                out.setdefault(field.value, row.canonical.get(field))
            out[STATUS_COLUMN] = result.status.value
            if include_meta:
                out[FIELD_META_KEY] = {
                    field.value: meta.model_dump()
                    for field, meta in result.field_meta.items()
                }
            output.append(out)
        return output


# ===================
# API RESPONSES
# ===================

class VerificationRowResponse(BaseSchema):
    """One row of the verification response."""

    row_index: int
    status: VerificationStatus
    is_verified: bool
    mismatched_fields: list[CanonicalField]
    field_meta: dict[CanonicalField, FieldMismatch]
    matched_by: MatchSource
    catalog_id: Optional[str] = None
    values: dict[str, str]
    canonical: CanonicalFieldSet


class VerificationRunResponse(BaseSchema):
    """Response body for POST /api/verify."""

    summary: VerificationSummary
    catalog_size: int
    started_at: datetime
    finished_at: datetime
    results: list[VerificationRowResponse]

    @classmethod
    def from_run(cls, run: VerificationRun) -> "VerificationRunResponse":
        return cls(
            summary=run.summary,
            catalog_size=run.catalog_size,
            started_at=run.started_at,
            finished_at=run.finished_at,
            results=[
                VerificationRowResponse(
                    row_index=result.row_index,
                    status=result.status,
                    is_verified=result.status.is_verified,
                    mismatched_fields=result.mismatched_fields,
                    field_meta=result.field_meta,
                    matched_by=result.matched_by,
                    catalog_id=result.catalog_id,
                    values=row.values,
                    canonical=row.canonical,
                )
                for row, result in zip(run.rows, run.results)
            ],
        )
