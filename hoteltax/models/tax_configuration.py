"""TaxConfiguration model: a named rate rule scoped to an establishment."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Numeric, String, Text, func

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid, utc_now


class TaxType(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_PER_NIGHT = "fixed_per_night"
    FIXED_AMOUNT = "fixed_amount"


class TaxConfiguration(Base):
    """Tax rate rule.

    Rows are deactivated rather than deleted so that past calculations and
    exemptions stay attributable.
    """

    __tablename__ = "tax_configurations"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    establishment_id = Column(
        UUIDType,
        ForeignKey("establishments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    rate = Column(Numeric(14, 4), nullable=False)
    type = Column(String(20), nullable=False)
    applicable_to = Column(JSON, nullable=False, default=list)
    country_code = Column(String(2), nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    # Set client-side so catalog order has sub-second resolution.
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
