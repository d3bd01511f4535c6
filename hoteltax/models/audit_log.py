"""AuditLog model for tracking changes to tax configurations and exemptions."""

from sqlalchemy import JSON, Column, DateTime, String

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid, utc_now


class AuditLog(Base):
    """AuditLog model - records state changes to tax records."""

    __tablename__ = "audit_logs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    establishment_id = Column(UUIDType, nullable=True, index=True)
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(UUIDType, nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    changes = Column(JSON, nullable=False, default=dict)
    actor_type = Column(String(50), nullable=False)
    actor_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
