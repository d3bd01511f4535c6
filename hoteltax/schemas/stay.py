from datetime import date, datetime
from uuid import UUID

from pydantic import Field, model_validator

from hoteltax.models.stay import StayStatus
from hoteltax.schemas.common import CamelModel


class StayCreate(CamelModel):
    establishment_id: UUID
    client_id: UUID
    room: str | None = Field(default=None, max_length=50)
    check_in_date: date
    check_out_date: date
    adult_count: int = Field(default=1, ge=1)
    child_count: int = Field(default=0, ge=0)
    visit_purpose: str | None = Field(default=None, max_length=100)
    status: StayStatus = StayStatus.PLANNED
    remarks: str | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "StayCreate":
        if self.check_out_date <= self.check_in_date:
            raise ValueError("checkOutDate must be after checkInDate")
        return self


class StayUpdate(CamelModel):
    room: str | None = Field(default=None, max_length=50)
    check_in_date: date | None = None
    check_out_date: date | None = None
    adult_count: int | None = Field(default=None, ge=1)
    child_count: int | None = Field(default=None, ge=0)
    visit_purpose: str | None = Field(default=None, max_length=100)
    status: StayStatus | None = None
    remarks: str | None = None


class StayResponse(CamelModel):
    id: UUID
    establishment_id: UUID
    client_id: UUID
    room: str | None = None
    check_in_date: date
    check_out_date: date
    nights: int
    adult_count: int
    child_count: int
    visit_purpose: str | None = None
    status: str
    remarks: str | None = None
    created_at: datetime
    updated_at: datetime
