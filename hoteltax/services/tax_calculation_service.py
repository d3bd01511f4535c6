"""Tax calculation engine.

Turns the billable line items of a stay into an itemized tax breakdown using
the establishment's active rate catalog and the client's exemptions, and
records the result in the append-only calculation ledger.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hoteltax.core.errors import NotFound, TransientError, ValidationError
from hoteltax.models.establishment import Establishment
from hoteltax.models.shared import utc_now
from hoteltax.models.tax_calculation import (
    TaxCalculation,
    TaxCalculationDetail,
    TaxCalculationExemption,
)
from hoteltax.models.tax_configuration import TaxConfiguration, TaxType
from hoteltax.models.tax_exemption import TaxExemption
from hoteltax.repositories.client_repository import ClientRepository
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.repositories.stay_repository import StayRepository
from hoteltax.repositories.tax_calculation_repository import TaxCalculationRepository
from hoteltax.schemas.tax_calculation import LineItemInput
from hoteltax.services.exemption_registry import ExemptionRegistryService
from hoteltax.services.rate_catalog import RateCatalogService

logger = logging.getLogger(__name__)

ACCOMMODATION = "accommodation"
# Configurations written from the dashboard say "stays" where line items say
# "accommodation".
CATEGORY_ALIASES = {"stays": ACCOMMODATION, "stay": ACCOMMODATION}

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0")


def normalize_category(tag: str) -> str:
    tag = tag.strip().lower()
    return CATEGORY_ALIASES.get(tag, tag)


def quantize_money(amount: Decimal) -> Decimal:
    return amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


@dataclass
class PricedItem:
    """A line item with its total recomputed from quantity and unit price."""

    type: str
    description: str | None
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    @property
    def category(self) -> str:
        return normalize_category(self.type)

    def to_record(self) -> dict[str, str | int | None]:
        return {
            "type": self.type,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "total_price": str(self.total_price),
        }


@dataclass
class TaxLine:
    configuration: TaxConfiguration
    taxable_amount: Decimal
    tax_amount: Decimal
    applied_to: list[str] = field(default_factory=list)


def price_items(items: Sequence[LineItemInput]) -> list[PricedItem]:
    """Validate line items and recompute every total from quantity x unit price."""
    if not items:
        raise ValidationError.for_field("items", "At least one line item is required")

    details: dict[str, list[str]] = {}
    priced: list[PricedItem] = []
    for index, item in enumerate(items):
        if item.quantity < 1:
            details[f"items.{index}.quantity"] = ["Quantity must be at least 1"]
        if item.unit_price < 0:
            details[f"items.{index}.unitPrice"] = ["Unit price must not be negative"]
        if details:
            continue
        priced.append(
            PricedItem(
                type=item.type,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=quantize_money(item.unit_price * item.quantity),
            )
        )
    if details:
        raise ValidationError("Invalid line items", details=details)
    return priced


def compute_tax_lines(
    configurations: Sequence[TaxConfiguration],
    items: Sequence[PricedItem],
) -> list[TaxLine]:
    """Nominal tax lines, one per configuration matching at least one item type.

    Lines come out in the order of ``configurations``.
    """
    present = {item.category for item in items}
    lines: list[TaxLine] = []
    for configuration in configurations:
        categories = [normalize_category(tag) for tag in configuration.applicable_to or []]
        applied_to = [c for c in dict.fromkeys(categories) if c in present]
        if not applied_to:
            continue

        matching = [item for item in items if item.category in applied_to]
        rate = Decimal(str(configuration.rate))

        if configuration.type == TaxType.PERCENTAGE.value:
            taxable = sum((item.total_price for item in matching), ZERO)
            amount = quantize_money(taxable * rate / Decimal("100"))
        elif configuration.type == TaxType.FIXED_PER_NIGHT.value:
            # Quantity of accommodation items is a number of nights.
            taxable = Decimal(
                sum(item.quantity for item in matching if item.category == ACCOMMODATION)
            )
            amount = quantize_money(taxable * rate)
        elif configuration.type == TaxType.FIXED_AMOUNT.value:
            taxable = sum((item.total_price for item in matching), ZERO)
            amount = quantize_money(rate)
        else:
            raise ValidationError(
                f"Tax configuration {configuration.id} has unknown type '{configuration.type}'"
            )

        lines.append(
            TaxLine(
                configuration=configuration,
                taxable_amount=taxable,
                tax_amount=amount,
                applied_to=applied_to,
            )
        )
    return lines


class TaxCalculationService:
    """Computes, records and looks up tax calculations."""

    def __init__(self, db: Session):
        self.db = db
        self.rate_catalog = RateCatalogService(db)
        self.exemption_registry = ExemptionRegistryService(db)
        self.establishment_repo = EstablishmentRepository(db)
        self.client_repo = ClientRepository(db)
        self.stay_repo = StayRepository(db)
        self.calculation_repo = TaxCalculationRepository(db)

    def calculate(
        self,
        establishment_id: UUID,
        items: Sequence[LineItemInput],
        client_id: UUID | None = None,
        stay_id: UUID | None = None,
        check_for_exemptions: bool = True,
        effective_date: date | None = None,
    ) -> TaxCalculation:
        priced = price_items(items)
        establishment = self._get_establishment(establishment_id)
        client_id = self._resolve_parties(establishment_id, client_id, stay_id)

        computed_at = utc_now()
        local_date = computed_at.astimezone(ZoneInfo(str(establishment.timezone))).date()
        if effective_date is None:
            effective_date = local_date

        # Snapshot of catalog and exemptions, read once for the whole calculation.
        configurations = self.rate_catalog.list_configurations(
            establishment_id=establishment_id, active_only=True
        )
        in_force: dict[UUID, TaxExemption] = {}
        if check_for_exemptions and client_id is not None:
            in_force = self.exemption_registry.exemptions_in_force(client_id, effective_date)

        lines = compute_tax_lines(configurations, priced)

        details: list[TaxCalculationDetail] = []
        exemptions: list[TaxCalculationExemption] = []
        for position, line in enumerate(lines):
            configuration = line.configuration
            details.append(
                TaxCalculationDetail(
                    position=position,
                    tax_configuration_id=configuration.id,
                    name=configuration.name,
                    type=configuration.type,
                    rate=configuration.rate,
                    taxable_amount=line.taxable_amount,
                    tax_amount=line.tax_amount,
                    applied_to=line.applied_to,
                )
            )
            exemption = in_force.get(configuration.id)  # type: ignore[call-overload]
            if exemption is not None:
                exemptions.append(
                    TaxCalculationExemption(
                        position=len(exemptions),
                        exemption_id=exemption.id,
                        tax_configuration_id=configuration.id,
                        tax_name=configuration.name,
                        reason=exemption.reason,
                        document_number=exemption.document_number,
                        amount=line.tax_amount,
                    )
                )

        subtotal = sum((item.total_price for item in priced), ZERO)
        gross_tax = sum((line.tax_amount for line in lines), ZERO)
        exempted = sum((e.amount for e in exemptions), ZERO)  # type: ignore[misc]
        total_tax = max(gross_tax - exempted, ZERO)

        calculation = TaxCalculation(
            establishment_id=establishment_id,
            client_id=client_id,
            stay_id=stay_id,
            items=[item.to_record() for item in priced],
            subtotal=subtotal,
            total_tax=total_tax,
            total_amount=subtotal + total_tax,
            currency=establishment.currency,
            effective_date=effective_date,
            computed_at=computed_at,
            local_date=local_date,
        )
        try:
            calculation = self.calculation_repo.create(calculation, details, exemptions)
        except SQLAlchemyError as exc:
            logger.exception("Failed to record tax calculation for establishment %s", establishment_id)
            raise TransientError("Tax calculation could not be recorded, retry later") from exc

        logger.info(
            "Recorded tax calculation %s for establishment %s: subtotal=%s tax=%s (%d lines, %d exempt)",
            calculation.id,
            establishment_id,
            subtotal,
            total_tax,
            len(details),
            len(exemptions),
        )
        return calculation

    def get_calculation(self, calculation_id: UUID) -> TaxCalculation:
        calculation = self.calculation_repo.get_by_id(calculation_id)
        if not calculation:
            raise NotFound("Tax calculation", calculation_id)
        return calculation

    def _get_establishment(self, establishment_id: UUID) -> Establishment:
        establishment = self.establishment_repo.get_by_id(establishment_id)
        if establishment is None:
            raise NotFound("Establishment", establishment_id, field="establishmentId")
        return establishment

    def _resolve_parties(
        self,
        establishment_id: UUID,
        client_id: UUID | None,
        stay_id: UUID | None,
    ) -> UUID | None:
        """Check client and stay references; a stay supplies the client when none is given."""
        if stay_id is not None:
            stay = self.stay_repo.get_by_id(stay_id)
            if stay is None:
                raise NotFound("Stay", stay_id, field="stayId")
            if stay.establishment_id != establishment_id:
                raise ValidationError.for_field(
                    "stayId", "Stay belongs to a different establishment"
                )
            if client_id is None:
                client_id = stay.client_id  # type: ignore[assignment]
            elif stay.client_id != client_id:
                raise ValidationError.for_field("stayId", "Stay belongs to a different client")

        if client_id is not None:
            client = self.client_repo.get_by_id(client_id)
            if client is None:
                raise NotFound("Client", client_id, field="clientId")
            if client.establishment_id != establishment_id:
                raise ValidationError.for_field(
                    "clientId", "Client belongs to a different establishment"
                )
        return client_id
