"""Storage for the audit trail of tax configurations and exemptions."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.sorting import apply_order_by
from hoteltax.models.audit_log import AuditLog


class AuditLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> AuditLog:
        """Append one entry. Entries are never updated or deleted."""
        entry = AuditLog(**fields)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
        **filters: UUID | str | None,
    ) -> list[AuditLog]:
        """Newest first by default. ``None`` filters are ignored."""
        query = self.db.query(AuditLog).filter_by(
            **{name: value for name, value in filters.items() if value is not None}
        )
        query = apply_order_by(query, AuditLog, order_by)
        return query.offset(skip).limit(limit).all()
