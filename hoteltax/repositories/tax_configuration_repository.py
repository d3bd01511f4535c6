"""Tax configuration repository for data access."""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.models.tax_configuration import TaxConfiguration


class TaxConfigurationRepository:
    """Repository for TaxConfiguration model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(
        self,
        establishment_id: UUID | None = None,
        active: bool | None = None,
    ) -> list[TaxConfiguration]:
        """List configurations in catalog order (creation time, then id)."""
        query = self.db.query(TaxConfiguration)
        if establishment_id is not None:
            query = query.filter(TaxConfiguration.establishment_id == establishment_id)
        if active is not None:
            query = query.filter(TaxConfiguration.active.is_(active))
        return query.order_by(TaxConfiguration.created_at.asc(), TaxConfiguration.id.asc()).all()

    def get_by_id(self, configuration_id: UUID) -> TaxConfiguration | None:
        return (
            self.db.query(TaxConfiguration)
            .filter(TaxConfiguration.id == configuration_id)
            .first()
        )

    def get_by_ids(self, configuration_ids: list[UUID]) -> dict[UUID, TaxConfiguration]:
        if not configuration_ids:
            return {}
        rows = (
            self.db.query(TaxConfiguration)
            .filter(TaxConfiguration.id.in_(configuration_ids))
            .all()
        )
        return {row.id: row for row in rows}  # type: ignore[misc]

    def create(self, values: dict[str, Any]) -> TaxConfiguration:
        configuration = TaxConfiguration(**values)
        self.db.add(configuration)
        self.db.commit()
        self.db.refresh(configuration)
        return configuration

    def update(self, configuration: TaxConfiguration, values: dict[str, Any]) -> TaxConfiguration:
        for key, value in values.items():
            setattr(configuration, key, value)
        self.db.commit()
        self.db.refresh(configuration)
        return configuration
