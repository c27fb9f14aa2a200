"""
Match diagnostics side-channel.

The matcher reports what it fetched, indexed and decided through a
MatchReporter instead of printing. LoggingReporter sends a bounded sample of
row decisions to structlog; NullReporter discards everything.
"""

from typing import Optional, Protocol

import structlog

from config import settings
from models.verification import MatchResult, UploadRow, VerificationSummary

logger = structlog.get_logger(__name__)


class MatchReporter(Protocol):
    def catalog_fetched(self, source: str, count: int) -> None: ...

    def index_built(self, stats: dict[str, int]) -> None: ...

    def row_reconciled(self, row: UploadRow, result: MatchResult) -> None: ...

    def run_completed(self, summary: VerificationSummary) -> None: ...


class NullReporter:
    """Reporter that records nothing."""

    def catalog_fetched(self, source: str, count: int) -> None:
        pass

    def index_built(self, stats: dict[str, int]) -> None:
        pass

    def row_reconciled(self, row: UploadRow, result: MatchResult) -> None:
        pass

    def run_completed(self, summary: VerificationSummary) -> None:
        pass


class LoggingReporter:
    """
    structlog-backed reporter.

    Logs the first `sample_size` row decisions at debug level, then only
    the run-level events.
    """

    def __init__(self, sample_size: Optional[int] = None):
        self.sample_size = (
            settings.diagnostic_sample_size if sample_size is None else sample_size
        )
        self._sampled = 0

    def catalog_fetched(self, source: str, count: int) -> None:
        logger.info("catalog_fetched", source=source, count=count)

    def index_built(self, stats: dict[str, int]) -> None:
        logger.info("catalog_index_built", **stats)

    def row_reconciled(self, row: UploadRow, result: MatchResult) -> None:
        if self._sampled >= self.sample_size:
            return
        self._sampled += 1
        logger.debug(
            "row_reconciled_sample",
            row_index=row.index,
            upc=row.canonical.upc,
            manufacturer=row.canonical.manufacturer,
            model=row.canonical.model,
            status=result.status.value,
            matched_by=result.matched_by.value,
            catalog_id=result.catalog_id,
            mismatched=[f.value for f in result.mismatched_fields],
        )

    def run_completed(self, summary: VerificationSummary) -> None:
        logger.info(
            "verification_completed",
            total=summary.total,
            verified=summary.verified,
            not_verified=summary.not_verified,
            unknown=summary.unknown,
        )
