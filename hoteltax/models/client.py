from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, func

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid


class DocumentType(str, Enum):
    PASSPORT = "passport"
    ID_CARD = "id_card"
    DRIVER_LICENSE = "driver_license"
    OTHER = "other"


class Client(Base):
    __tablename__ = "clients"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    establishment_id = Column(
        UUIDType,
        ForeignKey("establishments.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    document_type = Column(String(20), nullable=True)
    document_number = Column(String(100), nullable=True, index=True)
    nationality = Column(String(100), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
