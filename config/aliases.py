"""
Upload column aliases.

Maps each canonical field to the header names accepted for it in uploaded
inventory files. Order matters: the first alias that holds a non-blank value
wins. Lookups try each alias as given, lowercased and uppercased.
"""

# =============================================================================
# CANONICAL FIELDS
# =============================================================================

# Descriptive tuple used as the attribute fallback key
CORE_FIELDS = ("manufacturer", "model", "type", "caliber")

# Compared only when both the upload and the catalog carry a value
OPTIONAL_FIELDS = ("importer", "country")

IDENTIFIER_FIELD = "upc"

ALL_FIELDS = (IDENTIFIER_FIELD,) + CORE_FIELDS + OPTIONAL_FIELDS


# =============================================================================
# ALIAS TABLE
# =============================================================================

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "upc": ("UPC", "EAN", "Barcode"),
    "manufacturer": ("Manufacturer", "MFR", "Brand", "Maker"),
    "model": ("Model",),
    "type": ("Type", "Category"),
    "caliber": ("Caliber", "Cal"),
    "importer": ("Importer",),
    "country": ("Country of Manufacture", "Country", "CountryOfManufacture"),
}

# Columns returned by the catalog store
CATALOG_COLUMNS = ("id",) + ALL_FIELDS
