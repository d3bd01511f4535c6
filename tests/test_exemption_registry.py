"""Tests for the exemption registry service."""

import uuid
from datetime import date

import pytest

from hoteltax.core.errors import NotFound, ValidationError
from hoteltax.models.audit_log import AuditLog
from hoteltax.models.client import Client
from hoteltax.schemas.tax_exemption import TaxExemptionCreate
from hoteltax.services.exemption_registry import ExemptionRegistryService
from tests.conftest import DEFAULT_ESTABLISHMENT_ID, make_configuration, make_exemption


def exemption_data(client_id, tax_configuration_id, **overrides) -> TaxExemptionCreate:
    values = {
        "establishment_id": DEFAULT_ESTABLISHMENT_ID,
        "client_id": client_id,
        "tax_configuration_id": tax_configuration_id,
        "reason": "Diplomatic mission",
        "document_number": "DIPL-0042",
        "valid_from": date(2024, 1, 1),
        "valid_until": date(2024, 12, 31),
    }
    values.update(overrides)
    return TaxExemptionCreate(**values)


class TestCreateExemption:
    def test_create(self, db_session, guest, city_tax):
        exemption = ExemptionRegistryService(db_session).create_exemption(
            exemption_data(guest.id, city_tax.id)
        )
        assert exemption.id is not None
        assert exemption.active is True
        assert db_session.query(AuditLog).filter(AuditLog.resource_id == exemption.id).count() == 1

    def test_window_must_not_be_inverted(self, db_session, guest, city_tax):
        with pytest.raises(ValidationError) as exc_info:
            ExemptionRegistryService(db_session).create_exemption(
                exemption_data(
                    guest.id,
                    city_tax.id,
                    valid_from=date(2024, 1, 1),
                    valid_until=date(2023, 12, 31),
                )
            )
        assert "validUntil" in exc_info.value.details

    def test_single_day_window(self, db_session, guest, city_tax):
        exemption = ExemptionRegistryService(db_session).create_exemption(
            exemption_data(
                guest.id, city_tax.id, valid_from=date(2024, 5, 1), valid_until=date(2024, 5, 1)
            )
        )
        assert exemption.valid_from == exemption.valid_until

    def test_unknown_configuration(self, db_session, guest):
        with pytest.raises(NotFound) as exc_info:
            ExemptionRegistryService(db_session).create_exemption(
                exemption_data(guest.id, uuid.uuid4())
            )
        assert "taxConfigurationId" in exc_info.value.details

    def test_unknown_client(self, db_session, city_tax):
        with pytest.raises(NotFound):
            ExemptionRegistryService(db_session).create_exemption(
                exemption_data(uuid.uuid4(), city_tax.id)
            )

    def test_configuration_of_other_establishment(self, db_session, guest, other_establishment):
        foreign_tax = make_configuration(
            db_session, "Foreign", "5", "percentage", establishment_id=other_establishment.id
        )
        with pytest.raises(ValidationError) as exc_info:
            ExemptionRegistryService(db_session).create_exemption(
                exemption_data(guest.id, foreign_tax.id)
            )
        assert "taxConfigurationId" in exc_info.value.details

    def test_client_of_other_establishment(self, db_session, city_tax, other_establishment):
        stranger = Client(
            establishment_id=other_establishment.id, first_name="Jean", last_name="Mbala"
        )
        db_session.add(stranger)
        db_session.commit()

        with pytest.raises(ValidationError) as exc_info:
            ExemptionRegistryService(db_session).create_exemption(
                exemption_data(stranger.id, city_tax.id)
            )
        assert "clientId" in exc_info.value.details


class TestUpdateAndDeactivate:
    def test_update_replaces_window(self, db_session, guest, city_tax):
        service = ExemptionRegistryService(db_session)
        exemption = service.create_exemption(exemption_data(guest.id, city_tax.id))

        updated = service.update_exemption(
            exemption.id,
            exemption_data(guest.id, city_tax.id, valid_until=date(2024, 6, 30)),
        )
        assert updated.valid_until == date(2024, 6, 30)
        log = db_session.query(AuditLog).filter(AuditLog.action == "updated").one()
        assert log.changes == {"valid_until": {"old": "2024-12-31", "new": "2024-06-30"}}

    def test_update_unknown(self, db_session, guest, city_tax):
        with pytest.raises(NotFound):
            ExemptionRegistryService(db_session).update_exemption(
                uuid.uuid4(), exemption_data(guest.id, city_tax.id)
            )

    def test_deactivate_is_idempotent(self, db_session, guest, city_tax):
        exemption = make_exemption(
            db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 12, 31)
        )
        service = ExemptionRegistryService(db_session)
        service.deactivate_exemption(exemption.id)
        assert service.deactivate_exemption(exemption.id).active is False
        assert db_session.query(AuditLog).filter(AuditLog.action == "deactivated").count() == 1


class TestLookups:
    def test_is_exempt_inclusive_bounds(self, db_session, guest, city_tax):
        make_exemption(db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 1, 31))
        service = ExemptionRegistryService(db_session)

        assert service.is_exempt(guest.id, city_tax.id, date(2024, 1, 1))
        assert service.is_exempt(guest.id, city_tax.id, date(2024, 1, 31))
        assert not service.is_exempt(guest.id, city_tax.id, date(2023, 12, 31))
        assert not service.is_exempt(guest.id, city_tax.id, date(2024, 2, 1))

    def test_inactive_exemption_does_not_count(self, db_session, guest, city_tax):
        make_exemption(
            db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 1, 31), active=False
        )
        assert not ExemptionRegistryService(db_session).is_exempt(
            guest.id, city_tax.id, date(2024, 1, 15)
        )

    def test_find_exemption_returns_record(self, db_session, guest, city_tax):
        created = make_exemption(
            db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 1, 31)
        )
        found = ExemptionRegistryService(db_session).find_exemption(
            guest.id, city_tax.id, date(2024, 1, 10)
        )
        assert found is not None
        assert found.id == created.id

    def test_exemptions_in_force_prefers_earliest_grant(self, db_session, guest, city_tax):
        earlier = make_exemption(
            db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 12, 31)
        )
        make_exemption(db_session, guest.id, city_tax.id, date(2024, 3, 1), date(2024, 3, 31))

        in_force = ExemptionRegistryService(db_session).exemptions_in_force(
            guest.id, date(2024, 3, 15)
        )
        assert list(in_force) == [city_tax.id]
        assert in_force[city_tax.id].id == earlier.id

    def test_list_filters(self, db_session, guest, city_tax, tourism_levy):
        make_exemption(db_session, guest.id, city_tax.id, date(2024, 1, 1), date(2024, 1, 31))
        make_exemption(
            db_session,
            guest.id,
            tourism_levy.id,
            date(2024, 2, 1),
            date(2024, 2, 28),
            active=False,
        )
        service = ExemptionRegistryService(db_session)

        assert len(service.list_exemptions(client_id=guest.id)) == 2
        assert len(service.list_exemptions(active_only=True)) == 1
        assert service.list_exemptions(establishment_id=uuid.uuid4()) == []
