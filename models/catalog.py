"""
Catalog schemas.

A CatalogRecord is one authoritative product entry read from the catalog
store. Several records may share a UPC or an attribute combination.
"""

from pydantic import Field, field_validator
from typing import Any, Optional

from models.base import BaseSchema


class CatalogRecord(BaseSchema):
    """
    One reference catalog entry.

    UPC is kept as text so leading zeros survive; numeric values coming back
    from the store are coerced.
    """

    id: str = Field(..., description="Store-assigned record id")
    upc: Optional[str] = Field(None, description="UPC/EAN digits as text")
    manufacturer: Optional[str] = Field(None, description="Manufacturer name")
    model: Optional[str] = Field(None, description="Model designation")
    type: Optional[str] = Field(None, description="Firearm type, e.g. Pistol")
    caliber: Optional[str] = Field(None, description="Caliber or gauge")
    importer: Optional[str] = Field(None, description="Importer of record")
    country: Optional[str] = Field(None, description="Country of manufacture")

    @field_validator(
        "id", "upc", "manufacturer", "model", "type", "caliber", "importer", "country",
        mode="before"
    )
    @classmethod
    def coerce_text(cls, v: Any) -> Optional[str]:
        """Store columns may come back as numbers."""
        if v is None:
            return None
        return str(v)

    def value(self, field: str) -> str:
        """Raw value of a canonical field, '' when absent."""
        return getattr(self, field) or ""
