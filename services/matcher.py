"""
Catalog matcher and field reconciler.

Resolves each upload row to catalog candidates and decides, field by field,
whether the row agrees with the catalog.

Candidate resolution, first hit wins:
    1. Identifier: rows whose UPC digits (leading zeros ignored) match
       catalog records.
    2. Attributes: catalog records with the same normalized
       (manufacturer, model, type, caliber) tuple.
    3. Closest: catalog records sharing manufacturer + model, ranked by how
       many core fields agree.
    4. Nothing: UNKNOWN.

Duplicate catalog entries are expected. Every index key maps to a list and
candidates keep the order the store returned them in.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from models.catalog import CatalogRecord
from models.verification import (
    CORE_CANONICAL_FIELDS,
    OPTIONAL_CANONICAL_FIELDS,
    CanonicalField,
    CanonicalFieldSet,
    FieldMismatch,
    MatchResult,
    MatchSource,
    UploadRow,
    VerificationStatus,
)
from utils.normalization import (
    attribute_key,
    make_model_key,
    normalize_caliber,
    normalize_identifier,
    normalize_manufacturer,
    normalize_model,
    normalize_token,
    normalize_type,
)

# Mismatch reasons
MISSING_VALUE = "missing value"
NO_CATALOG_MATCH = "no catalog match"
CLOSEST_MATCH_DIFFERS = "closest catalog match differs"
IDENTIFIER_NOT_FOUND = "identifier not found in catalog; matched by attributes"
IDENTIFIER_NOT_FOUND_CLOSEST = "identifier not found in catalog"

# Both tokens must be at least this long before containment counts as a match
MIN_CONTAINMENT_LENGTH = 3

FieldComparator = Callable[[str, str], bool]


# ===================
# FIELD COMPARISON
# ===================

@dataclass(frozen=True)
class FieldComparison:
    match: bool
    reason: Optional[str] = None


def exact_match(normalizer: Callable[[str], str]) -> FieldComparator:
    """Equal after normalization."""
    def compare(actual: str, expected: str) -> bool:
        return normalizer(actual) == normalizer(expected)
    return compare


def containment_match(normalizer: Callable[[str], str]) -> FieldComparator:
    """
    Equal after normalization, or one token contains the other.

    Tolerates one side carrying extra descriptive text ("AR15" vs
    "AR-15 RIFLE").
    """
    def compare(actual: str, expected: str) -> bool:
        a, e = normalizer(actual), normalizer(expected)
        if a == e:
            return True
        if len(a) < MIN_CONTAINMENT_LENGTH or len(e) < MIN_CONTAINMENT_LENGTH:
            return False
        return a in e or e in a
    return compare


FIELD_COMPARATORS: dict[CanonicalField, FieldComparator] = {
    CanonicalField.MANUFACTURER: exact_match(normalize_manufacturer),
    CanonicalField.MODEL: containment_match(normalize_model),
    CanonicalField.TYPE: containment_match(normalize_type),
    CanonicalField.CALIBER: containment_match(normalize_caliber),
    CanonicalField.IMPORTER: exact_match(normalize_token),
    CanonicalField.COUNTRY: exact_match(normalize_token),
}


def compare_field(
    actual: Optional[str],
    expected: Optional[str],
    comparator: FieldComparator,
) -> FieldComparison:
    """
    Compare an uploaded value against the catalog value.

    Blank on both sides is not a conflict, and neither is a value the
    catalog does not have. A blank upload value against a catalog value is
    reported as missing.
    """
    actual = (actual or "").strip()
    expected = (expected or "").strip()

    if not actual and not expected:
        return FieldComparison(True)
    if not actual:
        return FieldComparison(False, MISSING_VALUE)
    if not expected:
        return FieldComparison(True)
    if comparator(actual, expected):
        return FieldComparison(True)
    return FieldComparison(False, f'Expected "{expected}"')


def compare_fields(
    fields: CanonicalFieldSet,
    record: CatalogRecord,
) -> dict[CanonicalField, FieldMismatch]:
    """
    Field-by-field comparison against one catalog record.

    Core fields follow compare_field; optional fields are only compared
    when both sides carry a value.
    """
    mismatches: dict[CanonicalField, FieldMismatch] = {}

    for field in CORE_CANONICAL_FIELDS + OPTIONAL_CANONICAL_FIELDS:
        actual = fields.get(field)
        expected = record.value(field.attr)
        if field in OPTIONAL_CANONICAL_FIELDS and not (actual and expected):
            continue
        outcome = compare_field(actual, expected, FIELD_COMPARATORS[field])
        if not outcome.match:
            mismatches[field] = FieldMismatch(
                expected=expected,
                actual=actual,
                reason=outcome.reason,
            )

    return mismatches


# ===================
# RANKING
# ===================

def count_matching_core_fields(fields: CanonicalFieldSet, record: CatalogRecord) -> int:
    """Number of core fields on which the row agrees with the record."""
    return sum(
        1
        for field in CORE_CANONICAL_FIELDS
        if compare_field(
            fields.get(field), record.value(field.attr), FIELD_COMPARATORS[field]
        ).match
    )


def rank_candidates(
    fields: CanonicalFieldSet,
    candidates: list[CatalogRecord],
) -> list[tuple[int, CatalogRecord]]:
    """
    Candidates ordered best first as (matching core fields, record).

    Ties keep index order.
    """
    scored = [(count_matching_core_fields(fields, c), c) for c in candidates]
    return sorted(scored, key=lambda pair: -pair[0])


# ===================
# INDEX
# ===================

class CatalogIndex:
    """
    Lookup indexes over one catalog snapshot.

    Built once per verification run and discarded with it. Records are
    de-duplicated by id per index; keys may hold any number of records.
    """

    def __init__(self):
        self.by_identifier: dict[str, list[CatalogRecord]] = defaultdict(list)
        self.by_attributes: dict[tuple, list[CatalogRecord]] = defaultdict(list)
        self.by_make_model: dict[tuple, list[CatalogRecord]] = defaultdict(list)
        self._identifier_ids: set[str] = set()
        self._attribute_ids: set[str] = set()

    @classmethod
    def build(
        cls,
        identifier_records: Iterable[CatalogRecord] = (),
        scan_records: Iterable[CatalogRecord] = (),
    ) -> "CatalogIndex":
        index = cls()
        index.add_identifier_records(identifier_records)
        index.add_scan_records(scan_records)
        return index

    def add_identifier_records(self, records: Iterable[CatalogRecord]) -> None:
        """Index records by identifier only."""
        for record in records:
            self._add_identifier(record)

    def add_scan_records(self, records: Iterable[CatalogRecord]) -> None:
        """Index full-scan records under every key."""
        for record in records:
            self._add_identifier(record)
            if record.id in self._attribute_ids:
                continue
            self._attribute_ids.add(record.id)

            key = attribute_key(record.manufacturer, record.model, record.type, record.caliber)
            if any(key):
                self.by_attributes[key].append(record)

            mm_key = make_model_key(record.manufacturer, record.model)
            if any(mm_key):
                self.by_make_model[mm_key].append(record)

    def _add_identifier(self, record: CatalogRecord) -> None:
        if record.id in self._identifier_ids:
            return
        self._identifier_ids.add(record.id)
        upc = normalize_identifier(record.upc)
        if upc:
            self.by_identifier[upc].append(record)

    def identifier_candidates(self, upc: str) -> list[CatalogRecord]:
        """Records sharing the identifier; `upc` must already be normalized."""
        return list(self.by_identifier.get(upc, ()))

    def attribute_candidates(self, key: tuple) -> list[CatalogRecord]:
        if not any(key):
            return []
        return list(self.by_attributes.get(key, ()))

    def make_model_candidates(self, key: tuple) -> list[CatalogRecord]:
        if not any(key):
            return []
        return list(self.by_make_model.get(key, ()))

    def has_identifier(self, upc: str) -> bool:
        return bool(upc) and upc in self.by_identifier

    @property
    def size(self) -> int:
        """Distinct catalog records indexed."""
        return len(self._identifier_ids | self._attribute_ids)

    def stats(self) -> dict[str, int]:
        return {
            "records": self.size,
            "identifier_keys": len(self.by_identifier),
            "attribute_keys": len(self.by_attributes),
            "make_model_keys": len(self.by_make_model),
        }


# ===================
# RECONCILIATION
# ===================

def _result(
    row: UploadRow,
    status: VerificationStatus,
    matched_by: MatchSource,
    mismatches: Optional[dict[CanonicalField, FieldMismatch]] = None,
    catalog_id: Optional[str] = None,
    candidate_count: int = 0,
) -> MatchResult:
    mismatches = mismatches or {}
    ordered = [field for field in CanonicalField if field in mismatches]
    return MatchResult(
        row_index=row.index,
        status=status,
        mismatched_fields=ordered,
        field_meta={field: mismatches[field] for field in ordered},
        matched_by=matched_by,
        catalog_id=catalog_id,
        candidate_count=candidate_count,
    )


def _unresolved_identifier(fields: CanonicalFieldSet, reason: str) -> FieldMismatch:
    return FieldMismatch(expected="", actual=fields.upc, reason=reason)


def reconcile_by_identifier(
    row: UploadRow,
    candidates: list[CatalogRecord],
) -> MatchResult:
    """Compare against the identifier candidate whose attributes agree, else the first."""
    fields = row.canonical
    key = attribute_key(fields.manufacturer, fields.model, fields.type, fields.caliber)
    exact = [
        c for c in candidates
        if attribute_key(c.manufacturer, c.model, c.type, c.caliber) == key
    ]
    target = exact[0] if exact else candidates[0]

    mismatches = compare_fields(fields, target)
    status = (
        VerificationStatus.NOT_VERIFIED if mismatches
        else VerificationStatus.VERIFIED_IDENTIFIER
    )
    return _result(
        row, status, MatchSource.IDENTIFIER, mismatches,
        catalog_id=target.id, candidate_count=len(candidates),
    )


def reconcile_by_attributes(
    row: UploadRow,
    candidates: list[CatalogRecord],
    identifier_supplied: bool,
) -> MatchResult:
    """Single candidate verifies; several are ambiguous."""
    if len(candidates) > 1:
        return _result(
            row, VerificationStatus.NOT_VERIFIED_AMBIGUOUS, MatchSource.ATTRIBUTES,
            candidate_count=len(candidates),
        )

    target = candidates[0]
    mismatches = compare_fields(row.canonical, target)
    if identifier_supplied:
        # A wrong UPC is a defect even when the description agrees
        mismatches[CanonicalField.UPC] = _unresolved_identifier(
            row.canonical, IDENTIFIER_NOT_FOUND
        )

    status = (
        VerificationStatus.NOT_VERIFIED if mismatches
        else VerificationStatus.VERIFIED_ATTRIBUTES
    )
    return _result(
        row, status, MatchSource.ATTRIBUTES, mismatches,
        catalog_id=target.id, candidate_count=1,
    )


def reconcile_closest(
    row: UploadRow,
    candidates: list[CatalogRecord],
    identifier_supplied: bool,
) -> MatchResult:
    """
    Report the core fields where the best-ranked candidate differs.

    The exact attribute key already missed, so the row is never verified
    here. A core field counts as differing when the tolerant comparator
    rejects it or its normalized key part differs from the candidate's;
    at least one core field always does.
    """
    fields = row.canonical
    _, target = rank_candidates(fields, candidates)[0]

    row_key = attribute_key(fields.manufacturer, fields.model, fields.type, fields.caliber)
    target_key = attribute_key(target.manufacturer, target.model, target.type, target.caliber)

    mismatches = compare_fields(fields, target)
    for field, row_part, target_part in zip(CORE_CANONICAL_FIELDS, row_key, target_key):
        if field in mismatches or row_part != target_part:
            mismatches[field] = FieldMismatch(
                expected=target.value(field.attr),
                actual=fields.get(field),
                reason=CLOSEST_MATCH_DIFFERS,
            )
    if identifier_supplied:
        mismatches[CanonicalField.UPC] = _unresolved_identifier(
            fields, IDENTIFIER_NOT_FOUND_CLOSEST
        )

    return _result(
        row, VerificationStatus.NOT_VERIFIED, MatchSource.CLOSEST, mismatches,
        catalog_id=target.id, candidate_count=len(candidates),
    )


def reconcile_unknown(row: UploadRow) -> MatchResult:
    fields = row.canonical
    mismatches = {
        field: FieldMismatch(expected="", actual=fields.get(field), reason=NO_CATALOG_MATCH)
        for field in CORE_CANONICAL_FIELDS
    }
    return _result(row, VerificationStatus.UNKNOWN, MatchSource.NONE, mismatches)


def reconcile_row(row: UploadRow, index: CatalogIndex) -> MatchResult:
    """
    Produce the verdict for one row.

    Never raises for data reasons: every row gets a status.
    """
    fields = row.canonical
    upc = normalize_identifier(fields.upc)

    if upc:
        candidates = index.identifier_candidates(upc)
        if candidates:
            return reconcile_by_identifier(row, candidates)

    key = attribute_key(fields.manufacturer, fields.model, fields.type, fields.caliber)
    candidates = index.attribute_candidates(key)
    if candidates:
        return reconcile_by_attributes(row, candidates, identifier_supplied=bool(upc))

    candidates = index.make_model_candidates(make_model_key(fields.manufacturer, fields.model))
    if candidates:
        return reconcile_closest(row, candidates, identifier_supplied=bool(upc))

    return reconcile_unknown(row)


def needs_full_scan(rows: Iterable[UploadRow], index: CatalogIndex) -> bool:
    """True when some row cannot be resolved by identifier alone."""
    for row in rows:
        upc = normalize_identifier(row.canonical.upc)
        if not index.has_identifier(upc):
            return True
    return False
