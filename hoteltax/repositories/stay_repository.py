from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from hoteltax.core.sorting import apply_order_by
from hoteltax.models.stay import Stay, StayStatus
from hoteltax.schemas.stay import StayCreate, StayUpdate


class StayRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(  # type: ignore[no-untyped-def]
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        status: str | None = None,
    ):
        query = self.db.query(Stay)
        if establishment_id is not None:
            query = query.filter(Stay.establishment_id == establishment_id)
        if client_id is not None:
            query = query.filter(Stay.client_id == client_id)
        if status is not None:
            query = query.filter(Stay.status == status)
        return query

    def get_all(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[Stay]:
        query = self._filtered(establishment_id, client_id, status)
        query = apply_order_by(query, Stay, order_by, default_field="check_in_date")
        return query.offset(skip).limit(limit).all()

    def count(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        status: str | None = None,
    ) -> int:
        query = self._filtered(establishment_id, client_id, status)
        return query.with_entities(func.count(Stay.id)).scalar() or 0

    def get_by_id(self, stay_id: UUID) -> Stay | None:
        return self.db.query(Stay).filter(Stay.id == stay_id).first()

    def create(self, data: StayCreate) -> Stay:
        values = data.model_dump()
        values["status"] = data.status.value
        stay = Stay(**values)
        self.db.add(stay)
        self.db.commit()
        self.db.refresh(stay)
        return stay

    def update(self, stay: Stay, data: StayUpdate) -> Stay:
        for key, value in data.model_dump(exclude_unset=True).items():
            if isinstance(value, StayStatus):
                value = value.value
            setattr(stay, key, value)
        self.db.commit()
        self.db.refresh(stay)
        return stay

    def cancel(self, stay_id: UUID) -> Stay | None:
        stay = self.get_by_id(stay_id)
        if not stay:
            return None
        stay.status = StayStatus.CANCELLED.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(stay)
        return stay
