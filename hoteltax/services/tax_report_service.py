"""Reporting aggregator over the tax calculation ledger.

Rows are streamed from the database in batches and folded into per-group
decimal accumulators, so memory is bounded by the number of groups (days and
tax configurations) rather than by the number of calculations in the range.

The three reads share one cutoff on computed_at. On PostgreSQL they also run
in a single REPEATABLE READ transaction, so a calculation committed while the
report is being built is either in every section or in none.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.config import settings
from hoteltax.core.errors import ValidationError
from hoteltax.models.shared import utc_now
from hoteltax.repositories.tax_calculation_repository import TaxCalculationRepository

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

SNAPSHOT_ISOLATION = "REPEATABLE READ"


@dataclass
class _TaxTypeTotals:
    name: str
    type: str
    rate: Decimal
    amount: Decimal = ZERO
    count: int = 0


@dataclass
class _DayTotals:
    total_tax: Decimal = ZERO
    transactions: int = 0


@dataclass
class _ExemptionTotals:
    name: str
    amount: Decimal = ZERO
    count: int = 0


class TaxReportService:
    def __init__(self, db: Session, batch_size: int | None = None):
        self.db = db
        self.repo = TaxCalculationRepository(db)
        self.batch_size = batch_size or settings.REPORT_STREAM_BATCH_SIZE

    def _begin_snapshot(self) -> None:
        if self.db.get_bind().dialect.name != "postgresql":
            return
        if self.db.in_transaction():
            logger.warning(
                "Report session already in a transaction; reading at its isolation level"
            )
            return
        self.db.connection(execution_options={"isolation_level": SNAPSHOT_ISOLATION})

    def generate_report(
        self,
        start_date: date,
        end_date: date,
        establishment_id: UUID | None = None,
    ) -> dict[str, Any]:
        """Aggregate calculations whose local date falls in [start_date, end_date]."""
        if start_date > end_date:
            raise ValidationError.for_field("endDate", "startDate must be on or before endDate")

        self._begin_snapshot()
        cutoff = utc_now()

        total_tax = ZERO
        total_subtotal = ZERO
        transactions = 0
        days: dict[date, _DayTotals] = {}
        for row in self.repo.iter_totals(
            start_date, end_date, establishment_id, self.batch_size, computed_before=cutoff
        ):
            tax = Decimal(row.total_tax)
            total_tax += tax
            total_subtotal += Decimal(row.subtotal)
            transactions += 1
            day = days.setdefault(row.local_date, _DayTotals())
            day.total_tax += tax
            day.transactions += 1

        gross_tax = ZERO
        tax_types: dict[UUID, _TaxTypeTotals] = {}
        for row in self.repo.iter_details(
            start_date, end_date, establishment_id, self.batch_size, computed_before=cutoff
        ):
            amount = Decimal(row.tax_amount)
            gross_tax += amount
            totals = tax_types.get(row.tax_configuration_id)
            if totals is None:
                totals = tax_types[row.tax_configuration_id] = _TaxTypeTotals(
                    name=row.name, type=row.type, rate=Decimal(row.rate)
                )
            else:
                # Rows arrive oldest first; the latest name and rate win.
                totals.name, totals.type, totals.rate = row.name, row.type, Decimal(row.rate)
            totals.amount += amount
            totals.count += 1

        exempted_total = ZERO
        exempted_count = 0
        exempted: dict[UUID, _ExemptionTotals] = {}
        for row in self.repo.iter_exemption_lines(
            start_date, end_date, establishment_id, self.batch_size, computed_before=cutoff
        ):
            amount = Decimal(row.amount)
            exempted_total += amount
            exempted_count += 1
            totals_ex = exempted.setdefault(
                row.tax_configuration_id, _ExemptionTotals(name=row.tax_name)
            )
            totals_ex.name = row.tax_name
            totals_ex.amount += amount
            totals_ex.count += 1

        by_tax_type = sorted(
            (
                {
                    "id": config_id,
                    "name": t.name,
                    "type": t.type,
                    "rate": t.rate,
                    "amount_collected": t.amount,
                    "number_of_transactions": t.count,
                }
                for config_id, t in tax_types.items()
            ),
            key=lambda entry: (-entry["amount_collected"], entry["name"]),
        )
        by_category: dict[str, Decimal] = {}
        for t in tax_types.values():
            by_category[t.type] = by_category.get(t.type, ZERO) + t.amount

        logger.info(
            "Generated tax report %s..%s for %s: %d calculations",
            start_date,
            end_date,
            establishment_id or "all establishments",
            transactions,
        )
        return {
            "period": {"start": start_date, "end": end_date},
            "establishment_id": establishment_id,
            "summary": {
                "total_tax_collected": total_tax,
                "gross_tax": gross_tax,
                "total_subtotal": total_subtotal,
                "total_transactions": transactions,
                "by_tax_type": by_tax_type,
                "by_category": by_category,
            },
            "daily_breakdown": [
                {"date": day, "total_tax": d.total_tax, "transactions": d.transactions}
                for day, d in sorted(days.items())
            ],
            "exemptions": {
                "total": exempted_total,
                "count": exempted_count,
                "by_type": [
                    {
                        "tax_configuration_id": config_id,
                        "name": e.name,
                        "amount": e.amount,
                        "count": e.count,
                    }
                    for config_id, e in sorted(
                        exempted.items(), key=lambda item: (-item[1].amount, item[1].name)
                    )
                ],
            },
        }
