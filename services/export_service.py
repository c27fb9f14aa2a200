"""
Export service: verification results as a downloadable CSV.

Columns are the uploaded columns in first-seen order, then any canonical
column the upload did not already have, then Status. Every value is quoted.
Per-field mismatch metadata is not exported.
"""

import csv
from typing import Optional

import pandas as pd
import structlog

from models.verification import STATUS_COLUMN, CanonicalField, VerificationRun

logger = structlog.get_logger(__name__)

EXPORT_FILENAME = "ffl-verifier-results.csv"


def export_columns(run: VerificationRun) -> list[str]:
    """Ordered header for the export."""
    columns: list[str] = []
    seen: set[str] = set()

    for row in run.rows:
        for column in row.values:
            if column not in seen and column != STATUS_COLUMN:
                seen.add(column)
                columns.append(column)

    for field in CanonicalField:
        if field.value not in seen:
            seen.add(field.value)
            columns.append(field.value)

    columns.append(STATUS_COLUMN)
    return columns


class ExportService:
    """Renders verification runs to delimited text."""

    def results_to_csv(self, run: VerificationRun) -> str:
        """
        Render a run as CSV text.

        Args:
            run: Completed verification run

        Returns:
            CSV with a header row and one line per upload row
        """
        columns = export_columns(run)
        df = pd.DataFrame(run.to_rows(include_meta=False), columns=columns)

        logger.info("exporting_results", rows=len(df), columns=len(columns))

        return df.to_csv(
            index=False,
            quoting=csv.QUOTE_ALL,
            na_rep="",
            lineterminator="\n",
        )


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
