from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from hoteltax.schemas.common import CamelModel


class TaxExemptionCreate(CamelModel):
    establishment_id: UUID
    client_id: UUID
    tax_configuration_id: UUID
    reason: str = Field(min_length=1)
    document_number: str | None = Field(default=None, max_length=100)
    valid_from: date
    valid_until: date
    active: bool = True


class TaxExemptionResponse(CamelModel):
    id: UUID
    establishment_id: UUID
    client_id: UUID
    tax_configuration_id: UUID
    reason: str
    document_number: str | None = None
    valid_from: date
    valid_until: date
    active: bool
    created_at: datetime
    updated_at: datetime | None = None
