"""Exemption registry: time-bounded waivers of a tax for a client."""

import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal
from hoteltax.core.errors import NotFound, ValidationError
from hoteltax.models.tax_exemption import TaxExemption
from hoteltax.repositories.client_repository import ClientRepository
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.repositories.tax_configuration_repository import TaxConfigurationRepository
from hoteltax.repositories.tax_exemption_repository import TaxExemptionRepository
from hoteltax.schemas.tax_exemption import TaxExemptionCreate
from hoteltax.services.audit_service import AuditService, actor_fields

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "tax_exemption"


def exemption_snapshot(exemption: TaxExemption) -> dict[str, Any]:
    return {
        "client_id": str(exemption.client_id),
        "tax_configuration_id": str(exemption.tax_configuration_id),
        "reason": exemption.reason,
        "document_number": exemption.document_number,
        "valid_from": exemption.valid_from.isoformat(),
        "valid_until": exemption.valid_until.isoformat(),
        "active": exemption.active,
    }


class ExemptionRegistryService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TaxExemptionRepository(db)
        self.configuration_repo = TaxConfigurationRepository(db)
        self.client_repo = ClientRepository(db)
        self.establishment_repo = EstablishmentRepository(db)
        self.audit = AuditService(db)

    def list_exemptions(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        active_only: bool | None = None,
    ) -> list[TaxExemption]:
        return self.repo.get_all(
            establishment_id=establishment_id,
            client_id=client_id,
            active=active_only,
        )

    def get_exemption(self, exemption_id: UUID) -> TaxExemption:
        exemption = self.repo.get_by_id(exemption_id)
        if not exemption:
            raise NotFound("Tax exemption", exemption_id)
        return exemption

    def create_exemption(
        self,
        data: TaxExemptionCreate,
        actor: Principal | None = None,
    ) -> TaxExemption:
        self._validate(data)
        exemption = self.repo.create(data.model_dump())
        self.audit.log_create(
            RESOURCE_TYPE,
            exemption.id,  # type: ignore[arg-type]
            data.establishment_id,
            **actor_fields(actor),
            data=exemption_snapshot(exemption),
        )
        logger.info(
            "Created exemption %s for client %s on tax %s (%s to %s)",
            exemption.id,
            data.client_id,
            data.tax_configuration_id,
            data.valid_from,
            data.valid_until,
        )
        return exemption

    def update_exemption(
        self,
        exemption_id: UUID,
        data: TaxExemptionCreate,
        actor: Principal | None = None,
    ) -> TaxExemption:
        """Fully replace an exemption, with the same checks as creation."""
        exemption = self.get_exemption(exemption_id)
        self._validate(data)
        before = exemption_snapshot(exemption)
        exemption = self.repo.update(exemption, data.model_dump())
        self.audit.log_update(
            RESOURCE_TYPE,
            exemption.id,  # type: ignore[arg-type]
            data.establishment_id,
            **actor_fields(actor),
            old_data=before,
            new_data=exemption_snapshot(exemption),
        )
        return exemption

    def deactivate_exemption(
        self,
        exemption_id: UUID,
        actor: Principal | None = None,
    ) -> TaxExemption:
        """Set active=false, keeping the row for the audit history. Idempotent."""
        exemption = self.get_exemption(exemption_id)
        if not exemption.active:
            return exemption
        exemption = self.repo.update(exemption, {"active": False})
        self.audit.log_deactivation(
            RESOURCE_TYPE,
            exemption.id,  # type: ignore[arg-type]
            exemption.establishment_id,  # type: ignore[arg-type]
            **actor_fields(actor),
        )
        logger.info("Deactivated exemption %s", exemption.id)
        return exemption

    def find_exemption(
        self,
        client_id: UUID,
        tax_configuration_id: UUID,
        on_date: date,
    ) -> TaxExemption | None:
        """The active exemption covering (client, tax) on ``on_date``, if any."""
        matches = self.repo.get_valid(client_id, on_date, tax_configuration_id)
        return matches[0] if matches else None

    def is_exempt(self, client_id: UUID, tax_configuration_id: UUID, on_date: date) -> bool:
        return self.find_exemption(client_id, tax_configuration_id, on_date) is not None

    def exemptions_in_force(self, client_id: UUID, on_date: date) -> dict[UUID, TaxExemption]:
        """Every exemption of a client valid on ``on_date``, keyed by tax configuration.

        Read in one query so a calculation sees a single snapshot. When two
        grants cover the same tax, the one starting earliest wins.
        """
        in_force: dict[UUID, TaxExemption] = {}
        for exemption in self.repo.get_valid(client_id, on_date):
            in_force.setdefault(exemption.tax_configuration_id, exemption)  # type: ignore[arg-type]
        return in_force

    def _validate(self, data: TaxExemptionCreate) -> None:
        if data.valid_from > data.valid_until:
            raise ValidationError.for_field(
                "validUntil", "validUntil must be on or after validFrom"
            )

        if self.establishment_repo.get_by_id(data.establishment_id) is None:
            raise NotFound("Establishment", data.establishment_id, field="establishmentId")

        configuration = self.configuration_repo.get_by_id(data.tax_configuration_id)
        if configuration is None:
            raise NotFound("Tax configuration", data.tax_configuration_id, field="taxConfigurationId")

        client = self.client_repo.get_by_id(data.client_id)
        if client is None:
            raise NotFound("Client", data.client_id, field="clientId")

        details: dict[str, list[str]] = {}
        if configuration.establishment_id != data.establishment_id:
            details["taxConfigurationId"] = [
                "Tax configuration belongs to a different establishment"
            ]
        if client.establishment_id != data.establishment_id:
            details["clientId"] = ["Client belongs to a different establishment"]
        if details:
            raise ValidationError("Invalid tax exemption", details=details)
