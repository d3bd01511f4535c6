"""Repository for the append-only tax calculation ledger."""

from collections.abc import Iterator
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from hoteltax.models.tax_calculation import (
    TaxCalculation,
    TaxCalculationDetail,
    TaxCalculationExemption,
)


class TaxCalculationRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        calculation: TaxCalculation,
        details: list[TaxCalculationDetail],
        exemptions: list[TaxCalculationExemption],
    ) -> TaxCalculation:
        """Persist a calculation with all of its lines in one transaction."""
        calculation.tax_details = details
        calculation.exemptions_applied = exemptions
        self.db.add(calculation)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(calculation)
        return calculation

    def get_by_id(self, calculation_id: UUID) -> TaxCalculation | None:
        return self.db.query(TaxCalculation).filter(TaxCalculation.id == calculation_id).first()

    def _filtered(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        stay_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Query:  # type: ignore[type-arg]
        query = self.db.query(TaxCalculation)
        if establishment_id is not None:
            query = query.filter(TaxCalculation.establishment_id == establishment_id)
        if client_id is not None:
            query = query.filter(TaxCalculation.client_id == client_id)
        if stay_id is not None:
            query = query.filter(TaxCalculation.stay_id == stay_id)
        if start_date is not None:
            query = query.filter(TaxCalculation.local_date >= start_date)
        if end_date is not None:
            query = query.filter(TaxCalculation.local_date <= end_date)
        return query

    def get_all(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        stay_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[TaxCalculation]:
        query = self._filtered(establishment_id, client_id, stay_id, start_date, end_date)
        return (
            query.order_by(TaxCalculation.computed_at.desc(), TaxCalculation.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self, **filters: Any) -> int:
        query = self._filtered(**filters).with_entities(func.count(TaxCalculation.id))
        return query.scalar() or 0

    # --- Streaming reads for reporting ---

    def _in_period(
        self,
        query: Query,  # type: ignore[type-arg]
        start_date: date,
        end_date: date,
        establishment_id: UUID | None,
        computed_before: datetime | None,
    ) -> Query:  # type: ignore[type-arg]
        query = query.filter(
            TaxCalculation.local_date >= start_date,
            TaxCalculation.local_date <= end_date,
        )
        if computed_before is not None:
            query = query.filter(TaxCalculation.computed_at <= computed_before)
        if establishment_id is not None:
            query = query.filter(TaxCalculation.establishment_id == establishment_id)
        return query

    def iter_totals(
        self,
        start_date: date,
        end_date: date,
        establishment_id: UUID | None = None,
        batch_size: int = 500,
        computed_before: datetime | None = None,
    ) -> Iterator[Row[Any]]:
        """Yield (local_date, subtotal, total_tax) per calculation in the period."""
        query = self.db.query(
            TaxCalculation.local_date,
            TaxCalculation.subtotal,
            TaxCalculation.total_tax,
        )
        query = self._in_period(query, start_date, end_date, establishment_id, computed_before)
        yield from query.order_by(TaxCalculation.computed_at.asc()).yield_per(batch_size)

    def iter_details(
        self,
        start_date: date,
        end_date: date,
        establishment_id: UUID | None = None,
        batch_size: int = 500,
        computed_before: datetime | None = None,
    ) -> Iterator[Row[Any]]:
        """Yield tax detail lines of calculations in the period, oldest first."""
        query = self.db.query(
            TaxCalculationDetail.tax_configuration_id,
            TaxCalculationDetail.name,
            TaxCalculationDetail.type,
            TaxCalculationDetail.rate,
            TaxCalculationDetail.tax_amount,
        ).join(TaxCalculation, TaxCalculation.id == TaxCalculationDetail.calculation_id)
        query = self._in_period(query, start_date, end_date, establishment_id, computed_before)
        query = query.order_by(TaxCalculation.computed_at.asc(), TaxCalculationDetail.position)
        yield from query.yield_per(batch_size)

    def iter_exemption_lines(
        self,
        start_date: date,
        end_date: date,
        establishment_id: UUID | None = None,
        batch_size: int = 500,
        computed_before: datetime | None = None,
    ) -> Iterator[Row[Any]]:
        """Yield exemption lines of calculations in the period, oldest first."""
        query = self.db.query(
            TaxCalculationExemption.tax_configuration_id,
            TaxCalculationExemption.tax_name,
            TaxCalculationExemption.amount,
        ).join(TaxCalculation, TaxCalculation.id == TaxCalculationExemption.calculation_id)
        query = self._in_period(query, start_date, end_date, establishment_id, computed_before)
        query = query.order_by(TaxCalculation.computed_at.asc(), TaxCalculationExemption.position)
        yield from query.yield_per(batch_size)
