"""
Supabase connection for the reference catalog.

The catalog is read-only from this service's point of view. When a service
role key is configured it is preferred so row-level security on the catalog
table does not hide records from verification.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class ConnectionError(Exception):
    """Supabase client could not be created."""
    pass


def _catalog_key() -> tuple[str, str]:
    """(key, role) used to read the catalog."""
    if settings.supabase_service_key:
        return settings.supabase_service_key, "service"
    return settings.supabase_key, "anon"


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.

    Call get_supabase_client.cache_clear() to reconnect.

    Raises:
        ConnectionError: If the client cannot be created
    """
    key, role = _catalog_key()
    try:
        client = create_client(settings.supabase_url, key)
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            role=role,
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e

    # Host only; the URL can carry project identifiers
    logger.info("supabase_connected", host=settings.supabase_url.split("//")[-1][:30], role=role)
    return client


def check_connection() -> dict:
    """
    Probe the catalog table.

    Returns:
        dict: {"status": "healthy", "catalog_table", "catalog_count"} or
        {"status": "unhealthy", "catalog_table", "error"}
    """
    try:
        response = (
            get_supabase_client()
            .table(settings.catalog_table)
            .select("id", count="exact")
            .limit(1)
            .execute()
        )
    except Exception as e:
        return {
            "status": "unhealthy",
            "catalog_table": settings.catalog_table,
            "error": str(e)
        }

    return {
        "status": "healthy",
        "catalog_table": settings.catalog_table,
        "catalog_count": response.count or 0
    }
