"""
Verification service: runs uploaded rows against the catalog.

One run:
    1. Fetch catalog records for every identifier in the upload
    2. Scan the full catalog only if some row still can't be resolved by
       identifier (no UPC, or UPC not found)
    3. Build a fresh CatalogIndex
    4. Reconcile every row in upload order

Fetch failures abort the run before any row is processed, so a run either
returns a result for every row or raises.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog

from config import settings
from exceptions import CatalogEmptyError, EmptyUploadError
from models.verification import UploadRow, VerificationRun
from services.catalog_service import CatalogService, get_catalog_service
from services.diagnostics import LoggingReporter, MatchReporter
from services.matcher import CatalogIndex, needs_full_scan, reconcile_row
from utils.normalization import normalize_identifier

logger = structlog.get_logger(__name__)


class VerificationService:
    """
    Verification orchestration.

    Holds no state between runs; each call to verify() builds its own index.
    """

    def __init__(self, catalog: Optional[CatalogService] = None):
        self.catalog = catalog or get_catalog_service()

    def verify(
        self,
        rows: list[UploadRow],
        reporter: Optional[MatchReporter] = None
    ) -> VerificationRun:
        """
        Verify uploaded rows against the catalog.

        Args:
            rows: Parsed upload rows
            reporter: Diagnostics sink (defaults to LoggingReporter)

        Returns:
            VerificationRun with one MatchResult per row

        Raises:
            EmptyUploadError: If there are no rows
            CatalogFetchError: If the catalog can't be read
            CatalogEmptyError: If no catalog data is available
        """
        if not rows:
            raise EmptyUploadError()

        reporter = reporter or LoggingReporter()
        started_at = datetime.now(timezone.utc)

        identifiers = {normalize_identifier(row.canonical.upc) for row in rows}
        identifiers.discard("")

        logger.info(
            "verification_started",
            rows=len(rows),
            identifiers=len(identifiers)
        )

        index = self._build_index(rows, identifiers, reporter)

        results = []
        for row in rows:
            result = reconcile_row(row, index)
            reporter.row_reconciled(row, result)
            results.append(result)

        run = VerificationRun(
            rows=rows,
            results=results,
            catalog_size=index.size,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
        )
        reporter.run_completed(run.summary)
        return run

    def _build_index(
        self,
        rows: list[UploadRow],
        identifiers: set[str],
        reporter: MatchReporter
    ) -> CatalogIndex:
        index = CatalogIndex()

        if identifiers:
            records = self.catalog.get_by_upcs(sorted(identifiers))
            reporter.catalog_fetched("identifier", len(records))
            index.add_identifier_records(records)

        if needs_full_scan(rows, index):
            records = self.catalog.get_all()
            reporter.catalog_fetched("full_scan", len(records))
            index.add_scan_records(records)

        if index.size == 0:
            logger.error("catalog_empty", table=settings.catalog_table)
            raise CatalogEmptyError(settings.catalog_table)

        reporter.index_built(index.stats())
        return index


# Singleton instance for convenience
_verification_service: Optional[VerificationService] = None

def get_verification_service() -> VerificationService:
    """Get or create VerificationService instance."""
    global _verification_service
    if _verification_service is None:
        _verification_service = VerificationService()
    return _verification_service
