"""Calculation ledger models.

A TaxCalculation row and its detail and exemption lines are written once in a
single transaction and never updated afterwards.
"""

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid, utc_now


class TaxCalculation(Base):
    __tablename__ = "tax_calculations"

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
        nullable=True,
        index=True,
    )
    stay_id = Column(
        UUIDType,
        ForeignKey("stays.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(18, 4), nullable=False)
    total_tax = Column(Numeric(18, 4), nullable=False)
    total_amount = Column(Numeric(18, 4), nullable=False)
    currency = Column(String(3), nullable=False)
    effective_date = Column(Date, nullable=False)
    computed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)
    # computed_at expressed in the establishment's timezone
    local_date = Column(Date, nullable=False, index=True)

    tax_details = relationship(
        "TaxCalculationDetail",
        order_by="TaxCalculationDetail.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    exemptions_applied = relationship(
        "TaxCalculationExemption",
        order_by="TaxCalculationExemption.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class TaxCalculationDetail(Base):
    __tablename__ = "tax_calculation_details"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    calculation_id = Column(
        UUIDType,
        ForeignKey("tax_calculations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    tax_configuration_id = Column(
        UUIDType,
        ForeignKey("tax_configurations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False)
    rate = Column(Numeric(14, 4), nullable=False)
    taxable_amount = Column(Numeric(18, 4), nullable=False)
    tax_amount = Column(Numeric(18, 4), nullable=False)
    applied_to = Column(JSON, nullable=False, default=list)


class TaxCalculationExemption(Base):
    __tablename__ = "tax_calculation_exemptions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    calculation_id = Column(
        UUIDType,
        ForeignKey("tax_calculations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False)
    exemption_id = Column(
        UUIDType,
        ForeignKey("tax_exemptions.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    tax_configuration_id = Column(UUIDType, nullable=False, index=True)
    tax_name = Column(String(255), nullable=False)
    reason = Column(Text, nullable=False)
    document_number = Column(String(100), nullable=True)
    amount = Column(Numeric(18, 4), nullable=False)
