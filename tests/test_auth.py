"""Tests for bearer authentication and API key management."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient

from hoteltax.core.config import settings
from hoteltax.main import app
from hoteltax.models.api_key import ApiKey
from hoteltax.repositories.api_key_repository import ApiKeyRepository, hash_api_key
from hoteltax.schemas.api_key import ApiKeyCreate
from tests.conftest import DEFAULT_ESTABLISHMENT_ID


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_required():
    settings.AUTH_REQUIRED = True


def make_token(role: str = "staff", expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    payload = {"sub": "user-42", "role": role, "exp": datetime.now(UTC) + expires_in, **claims}
    return jwt.encode(payload, settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


def bearer(credential: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {credential}"}


@pytest.fixture
def staff_key(db_session) -> str:
    _, raw_key = ApiKeyRepository(db_session).create(ApiKeyCreate(name="Front desk"))
    return raw_key


@pytest.fixture
def admin_key(db_session) -> str:
    _, raw_key = ApiKeyRepository(db_session).create(ApiKeyCreate(name="Ops", role="admin"))
    return raw_key


@pytest.mark.usefixtures("auth_required")
class TestBearerAuth:
    def test_missing_header(self, client: TestClient):
        response = client.get("/taxes/configurations")
        assert response.status_code == 401

    def test_malformed_header(self, client: TestClient):
        response = client.get("/taxes/configurations", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_valid_token(self, client: TestClient):
        response = client.get("/taxes/configurations", headers=bearer(make_token()))
        assert response.status_code == 200

    def test_expired_token(self, client: TestClient):
        token = make_token(expires_in=timedelta(minutes=-5))
        response = client.get("/taxes/configurations", headers=bearer(token))
        assert response.status_code == 401
        assert response.json()["detail"] == "Token has expired"

    def test_token_signed_with_other_secret(self, client: TestClient):
        token = jwt.encode(
            {"sub": "user-42", "exp": datetime.now(UTC) + timedelta(hours=1)},
            "not-the-secret",
            algorithm="HS256",
        )
        response = client.get("/taxes/configurations", headers=bearer(token))
        assert response.status_code == 401

    def test_api_key(self, client: TestClient, db_session, staff_key):
        response = client.get("/taxes/configurations", headers=bearer(staff_key))
        assert response.status_code == 200

        api_key = ApiKeyRepository(db_session).get_by_hash(hash_api_key(staff_key))
        db_session.refresh(api_key)
        assert api_key.last_used_at is not None

    def test_unknown_api_key(self, client: TestClient):
        response = client.get(
            "/taxes/configurations", headers=bearer(f"{settings.API_KEY_PREFIX}unknown")
        )
        assert response.status_code == 401

    def test_revoked_api_key(self, client: TestClient, db_session, staff_key):
        api_key = ApiKeyRepository(db_session).get_by_hash(hash_api_key(staff_key))
        ApiKeyRepository(db_session).revoke(api_key.id)

        response = client.get("/taxes/configurations", headers=bearer(staff_key))
        assert response.status_code == 401
        assert response.json()["detail"] == "API key has been revoked"

    def test_expired_api_key(self, client: TestClient, db_session):
        _, raw_key = ApiKeyRepository(db_session).create(
            ApiKeyCreate(expires_at=datetime.now(UTC) - timedelta(days=1))
        )
        response = client.get("/taxes/configurations", headers=bearer(raw_key))
        assert response.status_code == 401

    def test_staff_cannot_manage_establishments(self, client: TestClient):
        response = client.post(
            "/establishments/", json={"name": "Shadow Hotel"}, headers=bearer(make_token())
        )
        assert response.status_code == 403

    def test_admin_can_manage_establishments(self, client: TestClient):
        response = client.post(
            "/establishments/",
            json={"name": "Grand Hotel"},
            headers=bearer(make_token(role="admin")),
        )
        assert response.status_code == 201

    def test_staff_cannot_manage_tax_configurations(self, client: TestClient, city_tax):
        payload = {
            "establishmentId": str(DEFAULT_ESTABLISHMENT_ID),
            "name": "Shadow levy",
            "rate": "99",
            "type": "percentage",
            "applicableTo": ["accommodation"],
        }
        headers = bearer(make_token())

        response = client.post("/taxes/configurations", json=payload, headers=headers)
        assert response.status_code == 403
        response = client.put(
            f"/taxes/configurations/{city_tax.id}", json=payload, headers=headers
        )
        assert response.status_code == 403
        response = client.delete(f"/taxes/configurations/{city_tax.id}", headers=headers)
        assert response.status_code == 403

        current = client.get(f"/taxes/configurations/{city_tax.id}", headers=headers).json()
        assert current["name"] == "City tax"
        assert current["active"] is True

    def test_staff_api_key_cannot_create_tax_configuration(self, client: TestClient, staff_key):
        response = client.post(
            "/taxes/configurations",
            json={
                "establishmentId": str(DEFAULT_ESTABLISHMENT_ID),
                "name": "City tax",
                "rate": "10",
                "type": "percentage",
                "applicableTo": ["accommodation"],
            },
            headers=bearer(staff_key),
        )
        assert response.status_code == 403

    def test_admin_can_manage_tax_configurations(self, client: TestClient, city_tax):
        headers = bearer(make_token(role="admin"))
        response = client.delete(f"/taxes/configurations/{city_tax.id}", headers=headers)
        assert response.status_code == 204

    def test_audit_trail_records_token_subject(self, client: TestClient):
        response = client.post(
            "/establishments/",
            json={"name": "Audited Hotel"},
            headers=bearer(make_token(role="admin")),
        )
        establishment_id = response.json()["id"]
        client.post(
            "/taxes/configurations",
            json={
                "establishmentId": establishment_id,
                "name": "City tax",
                "rate": "10",
                "type": "percentage",
                "applicableTo": ["accommodation"],
            },
            headers=bearer(make_token(role="admin")),
        )

        logs = client.get(
            "/audit_logs/",
            params={"establishmentId": establishment_id},
            headers=bearer(make_token()),
        ).json()
        assert [(log["actorType"], log["actorId"]) for log in logs] == [("token", "user-42")]


@pytest.mark.usefixtures("auth_required")
class TestApiKeysAPI:
    def test_staff_key_is_forbidden(self, client: TestClient, staff_key):
        response = client.get("/api_keys/", headers=bearer(staff_key))
        assert response.status_code == 403

    def test_create_returns_raw_key_once(self, client: TestClient, admin_key):
        response = client.post(
            "/api_keys/", json={"name": "Night audit", "role": "staff"}, headers=bearer(admin_key)
        )
        assert response.status_code == 201
        data = response.json()
        assert data["rawKey"].startswith(settings.API_KEY_PREFIX)
        assert data["rawKey"].startswith(data["keyPrefix"])

        listed = client.get("/api_keys/", headers=bearer(admin_key))
        assert listed.headers["X-Total-Count"] == "2"
        assert all("rawKey" not in key for key in listed.json())

    def test_create_rejects_unknown_role(self, client: TestClient, admin_key):
        response = client.post("/api_keys/", json={"role": "owner"}, headers=bearer(admin_key))
        assert response.status_code == 422

    def test_revoke(self, client: TestClient, db_session, admin_key, staff_key):
        api_key = ApiKeyRepository(db_session).get_by_hash(hash_api_key(staff_key))
        response = client.delete(f"/api_keys/{api_key.id}", headers=bearer(admin_key))
        assert response.status_code == 204
        assert client.get("/taxes/configurations", headers=bearer(staff_key)).status_code == 401

    def test_rotate(self, client: TestClient, db_session, admin_key, staff_key):
        old = ApiKeyRepository(db_session).get_by_hash(hash_api_key(staff_key))
        response = client.post(f"/api_keys/{old.id}/rotate", headers=bearer(admin_key))
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Front desk"
        assert data["role"] == "staff"

        assert client.get("/taxes/configurations", headers=bearer(staff_key)).status_code == 401
        new_key = data["rawKey"]
        assert client.get("/taxes/configurations", headers=bearer(new_key)).status_code == 200
        assert db_session.query(ApiKey).count() == 3

    def test_rotate_revoked_key(self, client: TestClient, db_session, admin_key, staff_key):
        api_key = ApiKeyRepository(db_session).get_by_hash(hash_api_key(staff_key))
        ApiKeyRepository(db_session).revoke(api_key.id)

        response = client.post(f"/api_keys/{api_key.id}/rotate", headers=bearer(admin_key))
        assert response.status_code == 404
