from datetime import date, datetime
from uuid import UUID

from pydantic import Field

from hoteltax.models.client import DocumentType
from hoteltax.schemas.common import CamelModel


class ClientCreate(CamelModel):
    establishment_id: UUID
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    document_type: DocumentType | None = None
    document_number: str | None = Field(default=None, max_length=100)
    nationality: str | None = Field(default=None, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class ClientUpdate(CamelModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=255)
    last_name: str | None = Field(default=None, min_length=1, max_length=255)
    document_type: DocumentType | None = None
    document_number: str | None = Field(default=None, max_length=100)
    nationality: str | None = Field(default=None, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    notes: str | None = None


class ClientResponse(CamelModel):
    id: UUID
    establishment_id: UUID
    first_name: str
    last_name: str
    document_type: str | None = None
    document_number: str | None = None
    nationality: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
