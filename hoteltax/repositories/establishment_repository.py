from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from hoteltax.core.sorting import apply_order_by
from hoteltax.models.establishment import Establishment, EstablishmentStatus
from hoteltax.schemas.establishment import EstablishmentCreate, EstablishmentUpdate


class EstablishmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, status: str | None = None, city: str | None = None):  # type: ignore[no-untyped-def]
        query = self.db.query(Establishment)
        if status is not None:
            query = query.filter(Establishment.status == status)
        if city is not None:
            query = query.filter(Establishment.city == city)
        return query

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        status: str | None = None,
        city: str | None = None,
        order_by: str | None = None,
    ) -> list[Establishment]:
        query = apply_order_by(self._filtered(status, city), Establishment, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, status: str | None = None, city: str | None = None) -> int:
        query = self._filtered(status, city).with_entities(func.count(Establishment.id))
        return query.scalar() or 0

    def get_by_id(self, establishment_id: UUID) -> Establishment | None:
        return self.db.query(Establishment).filter(Establishment.id == establishment_id).first()

    def create(self, data: EstablishmentCreate) -> Establishment:
        establishment = Establishment(**data.model_dump(mode="json"))
        self.db.add(establishment)
        self.db.commit()
        self.db.refresh(establishment)
        return establishment

    def update(self, establishment_id: UUID, data: EstablishmentUpdate) -> Establishment | None:
        establishment = self.get_by_id(establishment_id)
        if not establishment:
            return None
        for key, value in data.model_dump(mode="json", exclude_unset=True).items():
            setattr(establishment, key, value)
        self.db.commit()
        self.db.refresh(establishment)
        return establishment

    def deactivate(self, establishment_id: UUID) -> Establishment | None:
        establishment = self.get_by_id(establishment_id)
        if not establishment:
            return None
        establishment.status = EstablishmentStatus.INACTIVE.value  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(establishment)
        return establishment
