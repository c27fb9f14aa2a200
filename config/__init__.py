"""
Configuration: environment settings, the Supabase client, and the
column alias table used to read uploads.
"""

from config.settings import settings, get_settings, Settings
from config.database import (
    get_supabase_client,
    check_connection,
    ConnectionError
)
from config.aliases import (
    FIELD_ALIASES,
    CORE_FIELDS,
    OPTIONAL_FIELDS,
    CATALOG_COLUMNS,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Database
    "get_supabase_client",
    "check_connection",
    "ConnectionError",

    # Upload columns
    "FIELD_ALIASES",
    "CORE_FIELDS",
    "OPTIONAL_FIELDS",
    "CATALOG_COLUMNS",
]
