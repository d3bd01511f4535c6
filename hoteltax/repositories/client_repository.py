from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hoteltax.core.sorting import apply_order_by
from hoteltax.models.client import Client
from hoteltax.models.stay import Stay
from hoteltax.models.tax_calculation import TaxCalculation
from hoteltax.models.tax_exemption import TaxExemption
from hoteltax.schemas.client import ClientCreate, ClientUpdate


class ClientRepository:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, establishment_id: UUID | None = None, search: str | None = None):  # type: ignore[no-untyped-def]
        query = self.db.query(Client)
        if establishment_id is not None:
            query = query.filter(Client.establishment_id == establishment_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    Client.first_name.ilike(pattern),
                    Client.last_name.ilike(pattern),
                    Client.document_number.ilike(pattern),
                )
            )
        return query

    def get_all(
        self,
        establishment_id: UUID | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
        order_by: str | None = None,
    ) -> list[Client]:
        query = apply_order_by(self._filtered(establishment_id, search), Client, order_by)
        return query.offset(skip).limit(limit).all()

    def count(self, establishment_id: UUID | None = None, search: str | None = None) -> int:
        query = self._filtered(establishment_id, search).with_entities(func.count(Client.id))
        return query.scalar() or 0

    def get_by_id(self, client_id: UUID) -> Client | None:
        return self.db.query(Client).filter(Client.id == client_id).first()

    def create(self, data: ClientCreate) -> Client:
        client = Client(**data.model_dump())
        self.db.add(client)
        self.db.commit()
        self.db.refresh(client)
        return client

    def update(self, client_id: UUID, data: ClientUpdate) -> Client | None:
        client = self.get_by_id(client_id)
        if not client:
            return None
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(client, key, value)
        self.db.commit()
        self.db.refresh(client)
        return client

    def is_referenced(self, client_id: UUID) -> bool:
        """Whether any stay, exemption or calculation points at this client."""
        stay = self.db.query(Stay.id).filter(Stay.client_id == client_id)
        exemption = self.db.query(TaxExemption.id).filter(TaxExemption.client_id == client_id)
        calculation = self.db.query(TaxCalculation.id).filter(
            TaxCalculation.client_id == client_id
        )
        return any(query.first() is not None for query in (stay, exemption, calculation))

    def delete(self, client_id: UUID) -> bool:
        client = self.get_by_id(client_id)
        if not client:
            return False
        self.db.delete(client)
        self.db.commit()
        return True
