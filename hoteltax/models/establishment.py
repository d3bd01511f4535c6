"""Establishment model: the hotel a tax configuration is scoped to."""

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text, func

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid


class EstablishmentType(str, Enum):
    HOTEL = "hotel"
    GUESTHOUSE = "guesthouse"
    MOTEL = "motel"
    APARTMENT = "apartment"
    OTHER = "other"


class EstablishmentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Establishment(Base):
    """A lodging business. Never hard-deleted because tax history references it."""

    __tablename__ = "establishments"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, index=True)
    type = Column(String(20), nullable=False, default=EstablishmentType.HOTEL.value)
    address = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True, index=True)
    state = Column(String(255), nullable=True)
    country = Column(String(255), nullable=True)
    zip_code = Column(String(20), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(2048), nullable=True)
    description = Column(Text, nullable=True)
    total_rooms = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=EstablishmentStatus.ACTIVE.value)
    currency = Column(String(3), nullable=False, default="CDF")
    timezone = Column(String(50), nullable=False, default="Africa/Kinshasa")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
