"""Pydantic schemas for AuditLog."""

from datetime import datetime
from typing import Any
from uuid import UUID

from hoteltax.schemas.common import CamelModel


class AuditLogResponse(CamelModel):
    id: UUID
    establishment_id: UUID | None
    resource_type: str
    resource_id: UUID
    action: str
    changes: dict[str, Any]
    actor_type: str
    actor_id: str | None
    created_at: datetime
