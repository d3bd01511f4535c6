"""Establishment schemas."""

from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator

from hoteltax.core.config import settings
from hoteltax.models.establishment import EstablishmentStatus, EstablishmentType
from hoteltax.schemas.common import CamelModel


def _check_timezone(value: str | None) -> str | None:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone '{value}'") from None
    return value


def _check_currency(value: str | None) -> str | None:
    if value is None:
        return value
    if len(value) != 3 or not value.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code")
    return value.upper()


class EstablishmentCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    type: EstablishmentType = EstablishmentType.HOTEL
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=255)
    state: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, max_length=255)
    zip_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=2048)
    description: str | None = None
    total_rooms: int = Field(default=0, ge=0)
    status: EstablishmentStatus = EstablishmentStatus.ACTIVE
    currency: str = Field(default_factory=lambda: settings.DEFAULT_CURRENCY)
    timezone: str = Field(default_factory=lambda: settings.DEFAULT_TIMEZONE)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        return _check_timezone(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str | None) -> str | None:
        return _check_currency(v)


class EstablishmentUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: EstablishmentType | None = None
    address: str | None = Field(default=None, max_length=255)
    city: str | None = Field(default=None, max_length=255)
    state: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, max_length=255)
    zip_code: str | None = Field(default=None, max_length=20)
    phone: str | None = Field(default=None, max_length=50)
    email: str | None = Field(default=None, max_length=255)
    website: str | None = Field(default=None, max_length=2048)
    description: str | None = None
    total_rooms: int | None = Field(default=None, ge=0)
    status: EstablishmentStatus | None = None
    currency: str | None = None
    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        return _check_timezone(v)

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str | None) -> str | None:
        return _check_currency(v)


class EstablishmentResponse(CamelModel):
    id: UUID
    name: str
    type: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    zip_code: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None
    description: str | None = None
    total_rooms: int
    status: str
    currency: str
    timezone: str
    created_at: datetime
    updated_at: datetime
