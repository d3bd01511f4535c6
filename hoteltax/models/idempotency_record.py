"""IdempotencyRecord model for API request-level idempotency."""

from sqlalchemy import JSON, Column, DateTime, Integer, String, UniqueConstraint

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid, utc_now


class IdempotencyRecord(Base):
    """Stores cached responses for idempotent API requests."""

    __tablename__ = "idempotency_records"
    __table_args__ = (UniqueConstraint("scope", "idempotency_key", name="uq_scope_idempotency_key"),)

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    # Caller identity the key belongs to
    scope = Column(String(255), nullable=False, index=True)
    idempotency_key = Column(String(255), nullable=False, index=True)
    request_method = Column(String(10), nullable=False)
    request_path = Column(String(500), nullable=False)
    response_status = Column(Integer, nullable=True)
    response_body = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
