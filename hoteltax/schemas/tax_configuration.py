"""TaxConfiguration schemas.

Range and enum checks on rate, type and applicableTo are done by the rate
catalog service so that direct callers get the same errors as HTTP callers.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import Field, field_validator

from hoteltax.schemas.common import CamelModel


def normalize_tags(value: Any) -> Any:
    """Accept a list or a comma-separated string; trim, lower-case, de-duplicate."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, list | tuple | set):
        return value
    tags: list[str] = []
    for raw in value:
        tag = str(raw).strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


class TaxConfigurationCreate(CamelModel):
    establishment_id: UUID
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    rate: Decimal
    type: str
    applicable_to: list[str] = Field(default_factory=list)
    country_code: str | None = Field(default=None, max_length=2)
    active: bool = True

    @field_validator("applicable_to", mode="before")
    @classmethod
    def split_applicable_to(cls, v: Any) -> Any:
        return normalize_tags(v)

    @field_validator("country_code")
    @classmethod
    def upper_country_code(cls, v: str | None) -> str | None:
        return v.upper() if v else None


class TaxConfigurationResponse(CamelModel):
    id: UUID
    establishment_id: UUID
    name: str
    description: str | None = None
    rate: Decimal
    type: str
    applicable_to: list[str]
    country_code: str | None = None
    active: bool
    created_at: datetime
    updated_at: datetime | None = None
