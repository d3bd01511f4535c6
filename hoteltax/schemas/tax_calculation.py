"""Tax calculation request and result schemas."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from hoteltax.schemas.common import CamelModel


class LineItemInput(CamelModel):
    type: str = Field(min_length=1, max_length=50)
    description: str | None = None
    quantity: int
    unit_price: Decimal
    # Accepted for compatibility with the dashboard payload; always recomputed.
    total_price: Decimal | None = None


class TaxCalculationRequest(CamelModel):
    establishment_id: UUID
    client_id: UUID | None = None
    stay_id: UUID | None = None
    items: list[LineItemInput]
    check_for_exemptions: bool = True
    effective_date: date | None = None


class LineItemResponse(CamelModel):
    type: str
    description: str | None = None
    quantity: int
    unit_price: Decimal
    total_price: Decimal


class TaxDetailResponse(CamelModel):
    tax_configuration_id: UUID
    name: str
    type: str
    rate: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    applied_to: list[str]


class ExemptionAppliedResponse(CamelModel):
    exemption_id: UUID
    tax_configuration_id: UUID
    tax_name: str
    reason: str
    document_number: str | None = None
    amount: Decimal


class CalculationResultResponse(CamelModel):
    id: UUID
    establishment_id: UUID
    client_id: UUID | None = None
    stay_id: UUID | None = None
    items: list[LineItemResponse]
    subtotal: Decimal
    tax_details: list[TaxDetailResponse]
    exemptions_applied: list[ExemptionAppliedResponse]
    total_tax: Decimal
    total_amount: Decimal
    currency: str
    effective_date: date
    computed_at: datetime
