"""Tax exemption repository for data access."""

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.models.tax_exemption import TaxExemption


class TaxExemptionRepository:
    """Repository for TaxExemption model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        active: bool | None = None,
    ) -> list[TaxExemption]:
        query = self.db.query(TaxExemption)
        if establishment_id is not None:
            query = query.filter(TaxExemption.establishment_id == establishment_id)
        if client_id is not None:
            query = query.filter(TaxExemption.client_id == client_id)
        if active is not None:
            query = query.filter(TaxExemption.active.is_(active))
        return query.order_by(TaxExemption.valid_from.asc(), TaxExemption.id.asc()).all()

    def get_by_id(self, exemption_id: UUID) -> TaxExemption | None:
        return self.db.query(TaxExemption).filter(TaxExemption.id == exemption_id).first()

    def get_valid(
        self,
        client_id: UUID,
        on_date: date,
        tax_configuration_id: UUID | None = None,
    ) -> list[TaxExemption]:
        """Active exemptions of a client whose window contains ``on_date``."""
        query = self.db.query(TaxExemption).filter(
            TaxExemption.client_id == client_id,
            TaxExemption.active.is_(True),
            TaxExemption.valid_from <= on_date,
            TaxExemption.valid_until >= on_date,
        )
        if tax_configuration_id is not None:
            query = query.filter(TaxExemption.tax_configuration_id == tax_configuration_id)
        return query.order_by(TaxExemption.valid_from.asc(), TaxExemption.id.asc()).all()

    def create(self, values: dict[str, Any]) -> TaxExemption:
        exemption = TaxExemption(**values)
        self.db.add(exemption)
        self.db.commit()
        self.db.refresh(exemption)
        return exemption

    def update(self, exemption: TaxExemption, values: dict[str, Any]) -> TaxExemption:
        for key, value in values.items():
            setattr(exemption, key, value)
        self.db.commit()
        self.db.refresh(exemption)
        return exemption
