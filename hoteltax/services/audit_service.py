"""Audit service for recording changes to tax configurations and exemptions."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal
from hoteltax.repositories.audit_log_repository import AuditLogRepository


def actor_fields(actor: Principal | None) -> dict[str, Any]:
    """Audit actor columns for a caller; no caller means a system change."""
    if actor is None:
        return {"actor_type": "system", "actor_id": None}
    return {"actor_type": actor.auth_type, "actor_id": actor.subject}


class AuditService:
    """Service for recording audit trail entries."""

    def __init__(self, db: Session):
        self.repo = AuditLogRepository(db)

    def log_create(
        self,
        resource_type: str,
        resource_id: UUID,
        establishment_id: UUID | None,
        actor_type: str = "system",
        actor_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        """Log a resource creation event."""
        self.repo.create(
            establishment_id=establishment_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action="created",
            changes=data or {},
            actor_type=actor_type,
            actor_id=actor_id,
        )

    def log_update(
        self,
        resource_type: str,
        resource_id: UUID,
        establishment_id: UUID | None,
        actor_type: str = "system",
        actor_id: str | None = None,
        old_data: dict[str, Any] | None = None,
        new_data: dict[str, Any] | None = None,
    ) -> None:
        """Log a resource update event, auto-diffing changed fields."""
        old = old_data or {}
        new = new_data or {}
        changes: dict[str, Any] = {}
        for key in sorted(set(old) | set(new)):
            if old.get(key) != new.get(key):
                changes[key] = {"old": old.get(key), "new": new.get(key)}
        if not changes:
            return
        self.repo.create(
            establishment_id=establishment_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action="updated",
            changes=changes,
            actor_type=actor_type,
            actor_id=actor_id,
        )

    def log_deactivation(
        self,
        resource_type: str,
        resource_id: UUID,
        establishment_id: UUID | None,
        actor_type: str = "system",
        actor_id: str | None = None,
    ) -> None:
        """Log an active -> inactive transition."""
        self.repo.create(
            establishment_id=establishment_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action="deactivated",
            changes={"active": {"old": True, "new": False}},
            actor_type=actor_type,
            actor_id=actor_id,
        )
