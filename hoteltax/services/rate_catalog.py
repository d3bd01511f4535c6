"""Rate catalog: the tax configurations of each establishment."""

import logging
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal
from hoteltax.core.errors import NotFound, ValidationError
from hoteltax.models.tax_configuration import TaxConfiguration, TaxType
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.repositories.tax_configuration_repository import TaxConfigurationRepository
from hoteltax.schemas.tax_configuration import TaxConfigurationCreate
from hoteltax.services.audit_service import AuditService, actor_fields

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "tax_configuration"
TAX_TYPES = {t.value for t in TaxType}

# Matches the Numeric(14, 4) rate column.
RATE_SCALE = 4
RATE_INTEGER_DIGITS = 10


def configuration_snapshot(configuration: TaxConfiguration) -> dict[str, Any]:
    """JSON-safe view of a configuration for the audit trail."""
    return {
        "name": configuration.name,
        "description": configuration.description,
        "rate": str(configuration.rate),
        "type": configuration.type,
        "applicable_to": list(configuration.applicable_to or []),
        "country_code": configuration.country_code,
        "active": configuration.active,
    }


class RateCatalogService:
    """List, validate and maintain tax configurations."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = TaxConfigurationRepository(db)
        self.establishment_repo = EstablishmentRepository(db)
        self.audit = AuditService(db)

    def list_configurations(
        self,
        establishment_id: UUID | None = None,
        active_only: bool | None = None,
    ) -> list[TaxConfiguration]:
        """Configurations in catalog order: creation time, then id.

        ``active_only=True`` returns active rows, ``False`` inactive rows and
        ``None`` both.
        """
        return self.repo.get_all(establishment_id=establishment_id, active=active_only)

    def get_configuration(self, configuration_id: UUID) -> TaxConfiguration:
        configuration = self.repo.get_by_id(configuration_id)
        if not configuration:
            raise NotFound("Tax configuration", configuration_id)
        return configuration

    def upsert_configuration(
        self,
        data: TaxConfigurationCreate,
        configuration_id: UUID | None = None,
        actor: Principal | None = None,
    ) -> TaxConfiguration:
        """Create a configuration, or fully replace the one with ``configuration_id``."""
        existing = None
        if configuration_id is not None:
            existing = self.get_configuration(configuration_id)

        self._validate(data, existing)
        values = {
            "establishment_id": data.establishment_id,
            "name": data.name,
            "description": data.description,
            "rate": data.rate,
            "type": data.type,
            "applicable_to": list(data.applicable_to),
            "country_code": data.country_code,
            "active": data.active,
        }

        if data.type == TaxType.PERCENTAGE.value and data.rate > Decimal("100"):
            logger.warning(
                "Percentage tax '%s' for establishment %s has rate %s above 100",
                data.name,
                data.establishment_id,
                data.rate,
            )

        if existing is None:
            configuration = self.repo.create(values)
            self.audit.log_create(
                RESOURCE_TYPE,
                configuration.id,  # type: ignore[arg-type]
                data.establishment_id,
                **actor_fields(actor),
                data=configuration_snapshot(configuration),
            )
            logger.info(
                "Created tax configuration %s for establishment %s",
                configuration.id,
                data.establishment_id,
            )
            return configuration

        before = configuration_snapshot(existing)
        configuration = self.repo.update(existing, values)
        self.audit.log_update(
            RESOURCE_TYPE,
            configuration.id,  # type: ignore[arg-type]
            data.establishment_id,
            **actor_fields(actor),
            old_data=before,
            new_data=configuration_snapshot(configuration),
        )
        return configuration

    def deactivate_configuration(
        self,
        configuration_id: UUID,
        actor: Principal | None = None,
    ) -> TaxConfiguration:
        """Set active=false. Deactivating an inactive configuration is a no-op."""
        configuration = self.get_configuration(configuration_id)
        if not configuration.active:
            return configuration
        configuration = self.repo.update(configuration, {"active": False})
        self.audit.log_deactivation(
            RESOURCE_TYPE,
            configuration.id,  # type: ignore[arg-type]
            configuration.establishment_id,  # type: ignore[arg-type]
            **actor_fields(actor),
        )
        logger.info("Deactivated tax configuration %s", configuration.id)
        return configuration

    def _validate(
        self,
        data: TaxConfigurationCreate,
        existing: TaxConfiguration | None,
    ) -> None:
        details: dict[str, list[str]] = {}

        if data.rate < 0:
            details.setdefault("rate", []).append("Rate must be greater than or equal to 0")
        elif data.rate >= Decimal(10) ** RATE_INTEGER_DIGITS:
            details.setdefault("rate", []).append(
                f"Rate must be less than 10^{RATE_INTEGER_DIGITS}"
            )
        elif data.rate.normalize().as_tuple().exponent < -RATE_SCALE:  # type: ignore[operator]
            details.setdefault("rate", []).append(
                f"Rate must have at most {RATE_SCALE} decimal places"
            )
        if data.type not in TAX_TYPES:
            details.setdefault("type", []).append(
                f"Type must be one of: {', '.join(sorted(TAX_TYPES))}"
            )
        if not data.applicable_to:
            details.setdefault("applicableTo", []).append(
                "At least one applicable category is required"
            )
        if existing is not None and existing.establishment_id != data.establishment_id:
            details.setdefault("establishmentId", []).append(
                "A tax configuration cannot be moved to another establishment"
            )
        elif self.establishment_repo.get_by_id(data.establishment_id) is None:
            details.setdefault("establishmentId", []).append(
                f"Establishment {data.establishment_id} does not exist"
            )

        if details:
            raise ValidationError("Invalid tax configuration", details=details)
