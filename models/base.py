"""
Base schemas for all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """
    Base for upload, catalog and response schemas.

    Features:
        - Strings are trimmed, so " 9mm " and "9mm" validate the same
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class SnapshotSchema(BaseModel):
    """
    Base for results that must not change once built.

    Assigning to a field raises ValidationError.
    """
    model_config = ConfigDict(frozen=True)
