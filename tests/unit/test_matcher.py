"""
Unit tests for the catalog matcher.

Run: pytest tests/unit/test_matcher.py -v
"""

import pytest

from models.catalog import CatalogRecord
from models.verification import CanonicalField, MatchSource, VerificationStatus
from services.matcher import (
    CLOSEST_MATCH_DIFFERS,
    FIELD_COMPARATORS,
    IDENTIFIER_NOT_FOUND,
    MISSING_VALUE,
    NO_CATALOG_MATCH,
    CatalogIndex,
    compare_field,
    count_matching_core_fields,
    needs_full_scan,
    rank_candidates,
    reconcile_row,
)
from tests.factories import CatalogRecordFactory, UploadRowFactory


def acme_row(**overrides) -> dict:
    row = {
        "UPC": "012345678905",
        "Manufacturer": "Acme Corp",
        "Model": "X100",
        "Type": "Pistol",
        "Caliber": "9mm",
    }
    row.update(overrides)
    return row


@pytest.fixture
def acme_record() -> CatalogRecord:
    return CatalogRecordFactory.build(
        id="acme-1",
        upc="12345678905",
        manufacturer="ACME CORP, L.L.C.",
        model="X100",
        type="Pistol",
        caliber="9mm",
        country="USA",
    )


# ===================
# FIELD COMPARISON
# ===================

class TestCompareField:
    """Tests for compare_field()"""

    def test_both_blank_matches(self):
        outcome = compare_field("", None, FIELD_COMPARATORS[CanonicalField.MODEL])
        assert outcome.match is True

    def test_missing_upload_value_is_mismatch(self):
        outcome = compare_field("  ", "X100", FIELD_COMPARATORS[CanonicalField.MODEL])
        assert outcome.match is False
        assert outcome.reason == MISSING_VALUE

    def test_missing_catalog_value_is_not_conflict(self):
        outcome = compare_field("X100", "", FIELD_COMPARATORS[CanonicalField.MODEL])
        assert outcome.match is True

    def test_mismatch_reason_quotes_expected(self):
        outcome = compare_field("Ruger", "Glock Inc.", FIELD_COMPARATORS[CanonicalField.MANUFACTURER])
        assert outcome.match is False
        assert outcome.reason == 'Expected "Glock Inc."'


class TestFieldComparators:
    """Tests for the per-field comparator table."""

    def test_manufacturer_ignores_corporate_suffix(self):
        compare = FIELD_COMPARATORS[CanonicalField.MANUFACTURER]
        assert compare("Glock", "GLOCK, INC.") is True

    def test_manufacturer_has_no_containment(self):
        compare = FIELD_COMPARATORS[CanonicalField.MANUFACTURER]
        assert compare("Smith", "Smith & Wesson") is False

    def test_model_tolerates_descriptive_suffix(self):
        compare = FIELD_COMPARATORS[CanonicalField.MODEL]
        assert compare("AR15", "AR-15 RIFLE") is True
        assert compare("AR-15 RIFLE", "AR15") is True

    def test_containment_needs_three_characters(self):
        compare = FIELD_COMPARATORS[CanonicalField.CALIBER]
        assert compare("22", "22 LR") is False

    def test_caliber_containment(self):
        compare = FIELD_COMPARATORS[CanonicalField.CALIBER]
        assert compare("9mm", "9mm Luger") is True

    def test_country_exact_only(self):
        compare = FIELD_COMPARATORS[CanonicalField.COUNTRY]
        assert compare("U.S.A.", "usa") is True
        assert compare("USA", "USA (Texas)") is False


# ===================
# RANKING
# ===================

class TestRankCandidates:
    """Tests for rank_candidates()"""

    def test_orders_by_matching_core_fields(self):
        row = UploadRowFactory.create(acme_row(UPC="", Caliber="9mm"))
        worse = CatalogRecordFactory.build(
            id="a", manufacturer="Acme Corp", model="X100", type="Rifle", caliber=".308"
        )
        better = CatalogRecordFactory.build(
            id="b", manufacturer="Acme Corp", model="X100", type="Pistol", caliber=".308"
        )

        ranked = rank_candidates(row.canonical, [worse, better])

        assert [(score, c.id) for score, c in ranked] == [(3, "b"), (2, "a")]

    def test_ties_keep_index_order(self):
        row = UploadRowFactory.create(acme_row(UPC=""))
        first = CatalogRecordFactory.build(id="first", manufacturer="Acme Corp", model="X100", caliber="45")
        second = CatalogRecordFactory.build(id="second", manufacturer="Acme Corp", model="X100", caliber="45")

        ranked = rank_candidates(row.canonical, [first, second])

        assert [c.id for _, c in ranked] == ["first", "second"]

    def test_count_matching_core_fields(self, acme_record):
        row = UploadRowFactory.create(acme_row())
        assert count_matching_core_fields(row.canonical, acme_record) == 4


# ===================
# INDEX
# ===================

class TestCatalogIndex:
    """Tests for CatalogIndex"""

    def test_identifier_index_ignores_leading_zeros(self, acme_record):
        index = CatalogIndex.build(identifier_records=[acme_record])

        assert index.identifier_candidates("12345678905") == [acme_record]
        assert index.has_identifier("12345678905") is True

    def test_identifier_only_records_not_in_attribute_index(self, acme_record):
        index = CatalogIndex.build(identifier_records=[acme_record])

        assert index.by_attributes == {}

    def test_duplicates_kept_per_key(self):
        records = [
            CatalogRecordFactory.build(id=str(i), upc="111111111111", model="X1")
            for i in range(3)
        ]

        index = CatalogIndex.build(scan_records=records)

        assert len(index.identifier_candidates("111111111111")) == 3
        assert len(index.by_attributes[("ACME", "X1", "PISTOL", "9MM")]) == 3

    def test_same_record_from_both_sources_counted_once(self, acme_record):
        index = CatalogIndex.build(identifier_records=[acme_record], scan_records=[acme_record])

        assert index.size == 1
        assert index.identifier_candidates("12345678905") == [acme_record]

    def test_stats(self, acme_record):
        index = CatalogIndex.build(scan_records=[acme_record])

        assert index.stats() == {
            "records": 1,
            "identifier_keys": 1,
            "attribute_keys": 1,
            "make_model_keys": 1,
        }


# ===================
# RECONCILIATION
# ===================

class TestReconcileByIdentifier:
    """Rows resolved through their UPC."""

    def test_leading_zero_upc_verifies(self, acme_record):
        row = UploadRowFactory.create(acme_row())
        index = CatalogIndex.build(identifier_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.status == VerificationStatus.VERIFIED_IDENTIFIER
        assert result.matched_by == MatchSource.IDENTIFIER
        assert result.catalog_id == "acme-1"
        assert result.mismatched_fields == []

    def test_caliber_mismatch_listed_alone(self, acme_record):
        row = UploadRowFactory.create(acme_row(Caliber=".45 ACP"))
        index = CatalogIndex.build(identifier_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.mismatched_fields == ["Caliber"]
        meta = result.field_meta[CanonicalField.CALIBER]
        assert meta.expected == "9mm"
        assert meta.actual == ".45 ACP"
        assert meta.reason == 'Expected "9mm"'

    def test_prefers_candidate_with_matching_attributes(self, sample_catalog):
        records = [CatalogRecord(**r) for r in sample_catalog]
        row = UploadRowFactory.create({
            "UPC": "764503022616",
            "Manufacturer": "Glock",
            "Model": "19",
            "Type": "Pistol",
            "Caliber": ".40 S&W",
        })
        index = CatalogIndex.build(identifier_records=records)

        result = reconcile_row(row, index)

        assert result.catalog_id == "3"
        assert result.status == VerificationStatus.VERIFIED_IDENTIFIER
        assert result.candidate_count == 2

    def test_falls_back_to_first_candidate(self, sample_catalog):
        records = [CatalogRecord(**r) for r in sample_catalog]
        row = UploadRowFactory.create({
            "UPC": "764503022616",
            "Manufacturer": "Glock",
            "Model": "19",
            "Type": "Pistol",
            "Caliber": "10mm Auto",
        })
        index = CatalogIndex.build(identifier_records=records)

        result = reconcile_row(row, index)

        assert result.catalog_id == "2"
        assert result.mismatched_fields == [CanonicalField.CALIBER]

    def test_blank_core_field_reported_missing(self, acme_record):
        row = UploadRowFactory.create(acme_row(Type=""))
        index = CatalogIndex.build(identifier_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.field_meta[CanonicalField.TYPE].reason == MISSING_VALUE

    def test_optional_field_compared_when_both_present(self, acme_record):
        row = UploadRowFactory.create(acme_row(Country="Germany"))
        index = CatalogIndex.build(identifier_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.mismatched_fields == [CanonicalField.COUNTRY]
        assert result.field_meta[CanonicalField.COUNTRY].expected == "USA"

    def test_blank_optional_field_is_not_mismatch(self):
        record = CatalogRecordFactory.build(
            upc="12345678905", manufacturer="Acme Corp", model="X100", importer="Acme Imports"
        )
        row = UploadRowFactory.create(acme_row())

        result = reconcile_row(row, CatalogIndex.build(identifier_records=[record]))

        assert result.status == VerificationStatus.VERIFIED_IDENTIFIER

    def test_containment_tolerated_on_model(self):
        record = CatalogRecordFactory.build(
            upc="12345678905", manufacturer="Acme Corp", model="AR-15 Rifle"
        )
        row = UploadRowFactory.create(acme_row(Model="AR15"))

        result = reconcile_row(row, CatalogIndex.build(identifier_records=[record]))

        assert result.status == VerificationStatus.VERIFIED_IDENTIFIER


class TestReconcileByAttributes:
    """Rows resolved through the normalized attribute tuple."""

    def test_single_attribute_match_verifies(self, acme_record):
        row = UploadRowFactory.create(acme_row(UPC=""))
        index = CatalogIndex.build(scan_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.status == VerificationStatus.VERIFIED_ATTRIBUTES
        assert result.matched_by == MatchSource.ATTRIBUTES
        assert result.catalog_id == "acme-1"

    def test_unresolved_identifier_downgrades(self, acme_record):
        row = UploadRowFactory.create(acme_row(UPC="999999999999"))
        index = CatalogIndex.build(scan_records=[acme_record])

        result = reconcile_row(row, index)

        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.mismatched_fields == [CanonicalField.UPC]
        assert result.field_meta[CanonicalField.UPC].reason == IDENTIFIER_NOT_FOUND
        assert result.field_meta[CanonicalField.UPC].actual == "999999999999"

    def test_multiple_candidates_are_ambiguous(self):
        records = [
            CatalogRecordFactory.build(id="a", upc="", manufacturer="Acme Corp", model="X100"),
            CatalogRecordFactory.build(id="b", upc="", manufacturer="ACME CORP.", model="X100"),
        ]
        row = UploadRowFactory.create(acme_row(UPC=""))

        result = reconcile_row(row, CatalogIndex.build(scan_records=records))

        assert result.status == VerificationStatus.NOT_VERIFIED_AMBIGUOUS
        assert result.mismatched_fields == []
        assert result.field_meta == {}
        assert result.candidate_count == 2
        assert result.catalog_id is None


class TestReconcileClosest:
    """Rows with only a manufacturer + model match."""

    def test_reports_fields_of_best_candidate(self):
        records = [
            CatalogRecordFactory.build(
                id="rifle", upc="", manufacturer="Acme Corp", model="X100", type="Rifle", caliber=".308"
            ),
            CatalogRecordFactory.build(
                id="pistol", upc="", manufacturer="Acme Corp", model="X100", type="Pistol", caliber=".308"
            ),
        ]
        row = UploadRowFactory.create(acme_row(UPC=""))

        result = reconcile_row(row, CatalogIndex.build(scan_records=records))

        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.matched_by == MatchSource.CLOSEST
        assert result.catalog_id == "pistol"
        assert result.mismatched_fields == [CanonicalField.CALIBER]
        assert result.field_meta[CanonicalField.CALIBER].reason == CLOSEST_MATCH_DIFFERS
        assert result.field_meta[CanonicalField.CALIBER].expected == ".308"

    def test_unresolved_identifier_also_reported(self):
        record = CatalogRecordFactory.build(
            upc="", manufacturer="Acme Corp", model="X100", type="Pistol", caliber="10mm"
        )
        row = UploadRowFactory.create(acme_row(UPC="555555555555"))

        result = reconcile_row(row, CatalogIndex.build(scan_records=[record]))

        assert result.mismatched_fields == [CanonicalField.UPC, CanonicalField.CALIBER]

    def test_tolerant_agreement_is_still_not_verified(self):
        # Arrange - containment accepts "Pistol" in "Semi Auto Pistol"
        record = CatalogRecordFactory.build(
            id="semi", upc="", manufacturer="Acme", model="X1", type="Semi Auto Pistol", caliber="9mm"
        )
        row = UploadRowFactory.create({
            "Manufacturer": "Acme", "Model": "X1", "Type": "Pistol", "Caliber": "9mm",
        })

        # Act
        result = reconcile_row(row, CatalogIndex.build(scan_records=[record]))

        # Assert
        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.matched_by == MatchSource.CLOSEST
        assert result.mismatched_fields == [CanonicalField.TYPE]
        detail = result.field_meta[CanonicalField.TYPE]
        assert detail.expected == "Semi Auto Pistol"
        assert detail.actual == "Pistol"
        assert detail.reason == CLOSEST_MATCH_DIFFERS

    def test_closest_always_reports_a_core_field(self):
        record = CatalogRecordFactory.build(
            upc="", manufacturer="Acme", model="X1", type="", caliber="9mm"
        )
        row = UploadRowFactory.create({
            "Manufacturer": "Acme", "Model": "X1", "Type": "Pistol", "Caliber": "9mm",
        })

        result = reconcile_row(row, CatalogIndex.build(scan_records=[record]))

        assert result.status == VerificationStatus.NOT_VERIFIED
        assert result.mismatched_fields == [CanonicalField.TYPE]
        assert result.field_meta[CanonicalField.TYPE].expected == ""


class TestReconcileUnknown:
    """Rows with no candidates at all."""

    def test_no_identifier_no_attribute_match(self, acme_record):
        row = UploadRowFactory.create({
            "Manufacturer": "Nobody Arms",
            "Model": "Z9",
            "Type": "Rifle",
            "Caliber": ".308",
        })

        result = reconcile_row(row, CatalogIndex.build(scan_records=[acme_record]))

        assert result.status == VerificationStatus.UNKNOWN
        assert result.matched_by == MatchSource.NONE
        assert result.mismatched_fields == [
            CanonicalField.MANUFACTURER,
            CanonicalField.MODEL,
            CanonicalField.TYPE,
            CanonicalField.CALIBER,
        ]
        assert all(m.reason == NO_CATALOG_MATCH for m in result.field_meta.values())

    def test_blank_row_is_unknown(self, acme_record):
        row = UploadRowFactory.create({"Notes": "nothing useful"})

        result = reconcile_row(row, CatalogIndex.build(scan_records=[acme_record]))

        assert result.status == VerificationStatus.UNKNOWN


class TestNeedsFullScan:
    """Tests for needs_full_scan()"""

    def test_false_when_every_identifier_resolves(self, acme_record):
        rows = UploadRowFactory.create_many([acme_row(), acme_row(UPC="12345678905")])
        index = CatalogIndex.build(identifier_records=[acme_record])

        assert needs_full_scan(rows, index) is False

    def test_true_when_row_lacks_identifier(self, acme_record):
        rows = UploadRowFactory.create_many([acme_row(), acme_row(UPC="")])
        index = CatalogIndex.build(identifier_records=[acme_record])

        assert needs_full_scan(rows, index) is True

    def test_true_when_identifier_unresolved(self, acme_record):
        rows = UploadRowFactory.create_many([acme_row(UPC="222222222222")])
        index = CatalogIndex.build(identifier_records=[acme_record])

        assert needs_full_scan(rows, index) is True
