import datetime as dt
from decimal import Decimal
from uuid import UUID

from hoteltax.schemas.common import CamelModel


class ReportPeriod(CamelModel):
    start: dt.date
    end: dt.date


class TaxTypeSummary(CamelModel):
    id: UUID
    name: str
    type: str
    rate: Decimal
    amount_collected: Decimal
    number_of_transactions: int


class ReportSummary(CamelModel):
    total_tax_collected: Decimal
    gross_tax: Decimal
    total_subtotal: Decimal
    total_transactions: int
    by_tax_type: list[TaxTypeSummary]
    by_category: dict[str, Decimal]


class DailyBreakdownEntry(CamelModel):
    date: dt.date
    total_tax: Decimal
    transactions: int


class ExemptionTypeSummary(CamelModel):
    tax_configuration_id: UUID
    name: str
    amount: Decimal
    count: int


class ExemptionSummary(CamelModel):
    total: Decimal
    count: int
    by_type: list[ExemptionTypeSummary]


class TaxReportResponse(CamelModel):
    period: ReportPeriod
    establishment_id: UUID | None = None
    summary: ReportSummary
    daily_breakdown: list[DailyBreakdownEntry]
    exemptions: ExemptionSummary
