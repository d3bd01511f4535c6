"""Tests for the audit trail of tax configurations and exemptions."""

import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from hoteltax.main import app
from tests.conftest import DEFAULT_ESTABLISHMENT_ID


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


def configuration_payload(**overrides):
    payload = {
        "establishmentId": str(DEFAULT_ESTABLISHMENT_ID),
        "name": "City tax",
        "rate": "20",
        "type": "percentage",
        "applicableTo": ["accommodation"],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def configuration_history(client: TestClient) -> str:
    """Create, update and deactivate one configuration."""
    configuration_id = client.post("/taxes/configurations", json=configuration_payload()).json()[
        "id"
    ]
    client.put(f"/taxes/configurations/{configuration_id}", json=configuration_payload(rate="15"))
    client.delete(f"/taxes/configurations/{configuration_id}")
    return configuration_id


class TestAuditLogsAPI:
    def test_lists_newest_first(self, client: TestClient, configuration_history):
        response = client.get("/audit_logs/", params={"resourceId": configuration_history})
        assert response.status_code == 200
        assert [log["action"] for log in response.json()] == [
            "deactivated",
            "updated",
            "created",
        ]

    def test_update_entry_records_changed_fields(self, client: TestClient, configuration_history):
        [entry] = client.get(
            "/audit_logs/",
            params={"resourceId": configuration_history, "action": "updated"},
        ).json()
        assert entry["resourceType"] == "tax_configuration"
        assert set(entry["changes"]) == {"rate"}
        assert Decimal(entry["changes"]["rate"]["new"]) == Decimal("15")
        assert entry["actorType"] == "anonymous"

    def test_filter_by_resource_type(
        self, client: TestClient, configuration_history, guest, city_tax
    ):
        client.post(
            "/taxes/exemptions",
            json={
                "establishmentId": str(DEFAULT_ESTABLISHMENT_ID),
                "clientId": str(guest.id),
                "taxConfigurationId": str(city_tax.id),
                "reason": "Diplomatic mission",
                "validFrom": "2024-01-01",
                "validUntil": "2024-12-31",
            },
        )
        logs = client.get("/audit_logs/", params={"resourceType": "tax_exemption"}).json()
        assert [log["action"] for log in logs] == ["created"]

    def test_filter_by_other_establishment(self, client: TestClient, configuration_history):
        response = client.get("/audit_logs/", params={"establishmentId": str(uuid.uuid4())})
        assert response.json() == []
