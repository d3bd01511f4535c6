from datetime import datetime
from uuid import UUID

from pydantic import Field

from hoteltax.schemas.common import CamelModel


class ApiKeyCreate(CamelModel):
    name: str | None = Field(default=None, max_length=255)
    role: str = Field(default="staff", pattern="^(admin|staff)$")
    expires_at: datetime | None = None


class ApiKeyResponse(CamelModel):
    id: UUID
    key_prefix: str
    name: str | None
    role: str
    last_used_at: datetime | None
    expires_at: datetime | None
    status: str
    created_at: datetime
    updated_at: datetime


class ApiKeyCreateResponse(ApiKeyResponse):
    """Returned only on creation and rotation; includes the raw API key."""

    raw_key: str
