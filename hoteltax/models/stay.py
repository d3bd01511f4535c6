"""Stay model: a client's booked occupancy of a room."""

from enum import Enum

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, func

from hoteltax.core.database import Base
from hoteltax.models.shared import UUIDType, generate_uuid


class StayStatus(str, Enum):
    PLANNED = "planned"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Stay(Base):
    __tablename__ = "stays"

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
    room = Column(String(50), nullable=True)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    adult_count = Column(Integer, nullable=False, default=1)
    child_count = Column(Integer, nullable=False, default=0)
    visit_purpose = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=StayStatus.PLANNED.value)
    remarks = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def nights(self) -> int:
        return (self.check_out_date - self.check_in_date).days  # type: ignore[no-any-return]
