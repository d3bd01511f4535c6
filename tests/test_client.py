"""Tests for the typed HTTP client, against a mocked transport."""

import json
import uuid
from datetime import date
from decimal import Decimal

import httpx
import pytest

from hoteltax.client import (
    ApiSession,
    AuthenticationError,
    HotelTaxClient,
    PermissionDeniedError,
)
from hoteltax.core.errors import ConflictError, NotFound, TransientError, ValidationError
from hoteltax.schemas.tax_calculation import LineItemInput, TaxCalculationRequest

BASE_URL = "https://tax.test"
ESTABLISHMENT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
CITY_TAX_ID = uuid.UUID("00000000-0000-0000-0000-0000000000aa")

CALCULATION = {
    "id": "7d3f9b52-4c1e-4a5b-9a67-2f1e0c3d8b11",
    "establishmentId": str(ESTABLISHMENT_ID),
    "clientId": None,
    "stayId": None,
    "items": [
        {
            "type": "accommodation",
            "description": None,
            "quantity": 3,
            "unitPrice": "100.00",
            "totalPrice": "300.00",
        }
    ],
    "subtotal": "300.00",
    "taxDetails": [
        {
            "taxConfigurationId": str(CITY_TAX_ID),
            "name": "City tax",
            "type": "percentage",
            "rate": "20.0000",
            "taxableAmount": "300.00",
            "taxAmount": "60.00",
            "appliedTo": ["accommodation"],
        }
    ],
    "exemptionsApplied": [],
    "totalTax": "60.00",
    "totalAmount": "360.00",
    "currency": "CDF",
    "effectiveDate": "2024-03-01",
    "computedAt": "2024-03-01T09:15:00Z",
}


def make_client(handler, session: ApiSession | None = None) -> HotelTaxClient:
    return HotelTaxClient(BASE_URL, session=session, transport=httpx.MockTransport(handler))


def error(status: int, code: str, message: str, details=None) -> httpx.Response:
    return httpx.Response(
        status, json={"error": code, "message": message, "details": details or {}}
    )


def calculation_request() -> TaxCalculationRequest:
    return TaxCalculationRequest(
        establishment_id=ESTABLISHMENT_ID,
        items=[LineItemInput(type="accommodation", quantity=3, unit_price=Decimal("100"))],
    )


class TestSession:
    def test_login_stores_token_and_sends_it(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path == "/auth/login":
                body = json.loads(request.content)
                assert body == {"email": "desk@memling.cd", "password": "s3cret"}
                return httpx.Response(
                    200, json={"token": "jwt-abc", "user": {"email": "desk@memling.cd"}}
                )
            return httpx.Response(200, json=[])

        with make_client(handler) as client:
            session = client.login("desk@memling.cd", "s3cret")
            assert session.is_authenticated
            assert session.user == {"email": "desk@memling.cd"}

            client.list_tax_configurations(establishment_id=ESTABLISHMENT_ID)

        assert "Authorization" not in seen[0].headers
        assert seen[1].headers["Authorization"] == "Bearer jwt-abc"
        assert seen[1].url.params["establishmentId"] == str(ESTABLISHMENT_ID)

    def test_login_without_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"user": {}})

        with make_client(handler) as client, pytest.raises(AuthenticationError):
            client.login("desk@memling.cd", "s3cret")

    def test_unauthorized_response_clears_session(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"detail": "Token has expired"})

        session = ApiSession(token="stale", user={"email": "desk@memling.cd"})
        with make_client(handler, session=session) as client:
            with pytest.raises(AuthenticationError, match="Token has expired"):
                client.get_calculation(uuid.uuid4())

        assert not session.is_authenticated
        assert session.user == {}

    def test_logout_clears_session_even_on_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        session = ApiSession(token="jwt-abc")
        with make_client(handler, session=session) as client:
            with pytest.raises(TransientError):
                client.logout()

        assert not session.is_authenticated


class TestErrorMapping:
    def test_validation_error_keeps_field_details(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return error(
                422,
                "VALIDATION_ERROR",
                "Invalid line items",
                {"items.0.quantity": ["Quantity must be greater than 0"]},
            )

        with make_client(handler) as client, pytest.raises(ValidationError) as exc_info:
            client.calculate(calculation_request())

        assert exc_info.value.message == "Invalid line items"
        assert exc_info.value.details == {
            "items.0.quantity": ["Quantity must be greater than 0"]
        }

    def test_not_found(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return error(404, "NOT_FOUND", "Establishment x not found", {"establishmentId": ["x"]})

        with make_client(handler) as client, pytest.raises(NotFound) as exc_info:
            client.get_establishment(uuid.uuid4())

        assert exc_info.value.message == "Establishment x not found"
        assert "establishmentId" in exc_info.value.details

    def test_conflict(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return error(409, "CONFLICT", "Client is referenced")

        with make_client(handler) as client, pytest.raises(ConflictError):
            client.delete_client(uuid.uuid4())

    def test_forbidden(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"detail": "Administrator role required"})

        with make_client(handler) as client, pytest.raises(PermissionDeniedError):
            client.deactivate_establishment(uuid.uuid4())

    def test_server_error_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return error(503, "TRANSIENT_ERROR", "Database unavailable")

        with make_client(handler) as client, pytest.raises(TransientError):
            client.get_report(date(2024, 1, 1), date(2024, 1, 31))

    def test_non_json_error_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>Bad gateway</html>")

        with make_client(handler) as client, pytest.raises(TransientError):
            client.list_stays()

    def test_network_failure_is_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with make_client(handler) as client, pytest.raises(TransientError):
            client.list_clients()


class TestTypedResponses:
    def test_calculate_parses_result_and_sends_idempotency_key(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json=CALCULATION)

        with make_client(handler) as client:
            result = client.calculate(calculation_request(), idempotency_key="checkout-204")

        request = seen[0]
        assert request.headers["Idempotency-Key"] == "checkout-204"
        body = json.loads(request.content)
        assert body["establishmentId"] == str(ESTABLISHMENT_ID)
        assert body["items"][0]["unitPrice"] == "100"
        assert body["checkForExemptions"] is True

        assert result.total_tax == Decimal("60.00")
        assert result.tax_details[0].tax_configuration_id == CITY_TAX_ID
        assert result.effective_date == date(2024, 3, 1)

    def test_report_query_and_parsing(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "period": {"start": "2024-01-01", "end": "2024-01-31"},
                    "establishmentId": None,
                    "summary": {
                        "totalTaxCollected": "60.00",
                        "grossTax": "60.00",
                        "totalSubtotal": "300.00",
                        "totalTransactions": 1,
                        "byTaxType": [
                            {
                                "id": str(CITY_TAX_ID),
                                "name": "City tax",
                                "type": "percentage",
                                "rate": "20",
                                "amountCollected": "60.00",
                                "numberOfTransactions": 1,
                            }
                        ],
                        "byCategory": {"percentage": "60.00"},
                    },
                    "dailyBreakdown": [
                        {"date": "2024-01-15", "totalTax": "60.00", "transactions": 1}
                    ],
                    "exemptions": {"total": "0", "count": 0, "byType": []},
                },
            )

        with make_client(handler) as client:
            report = client.get_report(date(2024, 1, 1), date(2024, 1, 31))

        params = seen[0].url.params
        assert params["startDate"] == "2024-01-01"
        assert params["endDate"] == "2024-01-31"
        assert "establishmentId" not in params
        assert report.summary.by_tax_type[0].amount_collected == Decimal("60.00")
        assert report.daily_breakdown[0].date == date(2024, 1, 15)

    def test_delete_returns_none_on_no_content(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(204)

        with make_client(handler) as client:
            assert client.deactivate_tax_configuration(uuid.uuid4()) is None
