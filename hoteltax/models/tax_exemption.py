"""TaxExemption model: a time-bounded waiver of one tax for one client."""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, String, Text, func

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid


class TaxExemption(Base):
    __tablename__ = "tax_exemptions"
    __table_args__ = (
        Index("ix_tax_exemptions_client_tax", "client_id", "tax_configuration_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    establishment_id = Column(
        UUIDType,
        ForeignKey("establishments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    client_id = Column(
        UUIDType,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    tax_configuration_id = Column(
        UUIDType,
        ForeignKey("tax_configurations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    reason = Column(Text, nullable=False)
    document_number = Column(String(100), nullable=True)
    valid_from = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
