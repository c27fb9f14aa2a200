"""
Catalog service for reading the reference firearm catalog.

Two access paths:
    - get_by_upcs: bulk fetch of the records matching a set of identifiers
    - iter_all / get_all: full-table scan in fixed-size pages

Any store failure is wrapped in CatalogFetchError; the caller treats it as
fatal to the run. No retries here.
"""

from typing import Iterable, Iterator, Optional
import structlog

from config import get_supabase_client, settings
from config.aliases import CATALOG_COLUMNS
from models.catalog import CatalogRecord
from exceptions import CatalogFetchError
from utils.normalization import normalize_digits, strip_leading_zeros

logger = structlog.get_logger(__name__)

SELECT_COLUMNS = ", ".join(CATALOG_COLUMNS)

# UPC-A, EAN-13 and GTIN-14 widths
IDENTIFIER_WIDTHS = (12, 13, 14)


def upc_lookup_forms(upc: str) -> set[str]:
    """
    Stored forms an identifier may take in the catalog.

    "012345678905" → {"012345678905", "12345678905", "0012345678905",
    "00012345678905"}
    """
    digits = normalize_digits(upc)
    stripped = strip_leading_zeros(digits)
    if not stripped:
        return set()

    forms = {digits, stripped}
    for width in IDENTIFIER_WIDTHS:
        if len(stripped) <= width:
            forms.add(stripped.zfill(width))
    return forms


class CatalogService:
    """
    Read-only access to the catalog table.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.catalog_table
        self.page_size = settings.catalog_page_size
        self.chunk_size = settings.catalog_in_chunk_size

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_upcs(self, upcs: Iterable[str]) -> list[CatalogRecord]:
        """
        Get every record whose UPC matches one of the identifiers.

        Each identifier is expanded into its leading-zero variants before
        querying.

        Args:
            upcs: Raw or normalized identifiers

        Returns:
            Matching records, de-duplicated by id, in fetch order

        Raises:
            CatalogFetchError: If the store query fails
        """
        lookup: set[str] = set()
        for upc in upcs:
            lookup |= upc_lookup_forms(upc)
        if not lookup:
            return []

        values = sorted(lookup)
        logger.info(
            "getting_catalog_by_upcs",
            identifiers=len(values),
            chunks=(len(values) + self.chunk_size - 1) // self.chunk_size
        )

        records: list[CatalogRecord] = []
        seen: set[str] = set()
        for start in range(0, len(values), self.chunk_size):
            chunk = values[start:start + self.chunk_size]
            try:
                result = (
                    self.db.table(self.table)
                    .select(SELECT_COLUMNS)
                    .in_("upc", chunk)
                    .execute()
                )
                page = [CatalogRecord(**row) for row in result.data or []]
            except Exception as e:
                logger.error(
                    "get_catalog_by_upcs_failed",
                    chunk_start=start,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise CatalogFetchError("identifier lookup", str(e)) from e

            for record in page:
                if record.id not in seen:
                    seen.add(record.id)
                    records.append(record)

        logger.info("catalog_by_upcs_retrieved", count=len(records))
        return records

    def iter_all(self) -> Iterator[CatalogRecord]:
        """
        Yield every catalog record, one page at a time.

        Raises:
            CatalogFetchError: If any page fails to load
        """
        offset = 0
        while True:
            try:
                result = (
                    self.db.table(self.table)
                    .select(SELECT_COLUMNS)
                    .order("id")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
                page = [CatalogRecord(**row) for row in result.data or []]
            except Exception as e:
                logger.error(
                    "catalog_scan_failed",
                    offset=offset,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise CatalogFetchError("scan", str(e)) from e

            logger.debug("catalog_page_fetched", offset=offset, count=len(page))
            yield from page

            if len(page) < self.page_size:
                return
            offset += self.page_size

    def get_all(self) -> list[CatalogRecord]:
        """Get the full catalog."""
        records = list(self.iter_all())
        logger.info("catalog_scan_complete", count=len(records))
        return records


# Singleton instance for convenience
_catalog_service: Optional[CatalogService] = None

def get_catalog_service() -> CatalogService:
    """Get or create CatalogService instance."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = CatalogService()
    return _catalog_service
