"""Typed HTTP client for the hotel tax service.

The caller's identity lives in an explicit ``ApiSession``: ``login`` fills it,
``logout`` or any 401 response clears it. Every endpoint has one method that
returns the matching pydantic response schema, and error responses are raised
as the service's own exception classes.

    with HotelTaxClient("https://tax.example.com") as client:
        client.login("frontdesk@example.com", "secret")
        result = client.calculate(TaxCalculationRequest(...))
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, TypeVar
from uuid import UUID

import httpx
from pydantic import BaseModel

from hoteltax.core.errors import (
    ConflictError,
    NotFound,
    TaxServiceError,
    TransientError,
    ValidationError,
)
from hoteltax.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from hoteltax.schemas.establishment import (
    EstablishmentCreate,
    EstablishmentResponse,
    EstablishmentUpdate,
)
from hoteltax.schemas.stay import StayCreate, StayResponse, StayUpdate
from hoteltax.schemas.tax_calculation import CalculationResultResponse, TaxCalculationRequest
from hoteltax.schemas.tax_configuration import TaxConfigurationCreate, TaxConfigurationResponse
from hoteltax.schemas.tax_exemption import TaxExemptionCreate, TaxExemptionResponse
from hoteltax.schemas.tax_report import TaxReportResponse

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class AuthenticationError(TaxServiceError):
    """Missing, expired or rejected credentials. The session has been cleared."""

    error_code = "UNAUTHORIZED"
    status_code = 401


class PermissionDeniedError(TaxServiceError):
    error_code = "FORBIDDEN"
    status_code = 403


@dataclass
class ApiSession:
    """Identity of the caller across requests."""

    token: str | None = None
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def invalidate(self) -> None:
        self.token = None
        self.user = {}


def _query(**params: Any) -> dict[str, Any]:
    """Drop unset query parameters and stringify the rest."""
    return {key: str(value) for key, value in params.items() if value is not None}


def _body(model: BaseModel, exclude_unset: bool = False) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_unset=exclude_unset)


class HotelTaxClient:
    def __init__(
        self,
        base_url: str,
        session: ApiSession | None = None,
        auth_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.auth_url = (auth_url or f"{self.base_url}/auth").rstrip("/")
        self.session = session or ApiSession()
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> "HotelTaxClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    # --- Session ---

    def login(self, email: str, password: str) -> ApiSession:
        """Exchange credentials for a token from the authentication service."""
        data = self._send(
            "POST",
            f"{self.auth_url}/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("Login response did not include a token")
        self.session.token = str(token)
        self.session.user = dict(data.get("user") or {})
        logger.info("Logged in to %s", self.auth_url)
        return self.session

    def logout(self) -> None:
        """Tell the authentication service, then forget the token either way."""
        try:
            if self.session.is_authenticated:
                self._send("POST", f"{self.auth_url}/logout")
        finally:
            self.session.invalidate()

    # --- Transport ---

    def _send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        request_headers = dict(headers or {})
        if authenticated and self.session.token:
            request_headers["Authorization"] = f"Bearer {self.session.token}"

        try:
            response = self._http.request(
                method, url, json=json, params=params, headers=request_headers
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransientError(f"Request to {url} failed: {exc}") from exc

        if response.is_success:
            if response.status_code == 204 or not response.content:
                return None
            return response.json()
        self._raise_for_response(response)

    def _raise_for_response(self, response: httpx.Response) -> None:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        message = str(payload.get("message") or payload.get("detail") or response.reason_phrase)
        details = payload.get("details") or {}
        status = response.status_code

        if status == 401:
            self.session.invalidate()
            raise AuthenticationError(message)
        if status == 403:
            raise PermissionDeniedError(message)
        if status == 404:
            raise NotFound("Resource", response.request.url.path, message=message, details=details)
        if status == 409:
            raise ConflictError(message, details=details)
        if status in (400, 422):
            raise ValidationError(message, details=details)
        if status >= 500:
            raise TransientError(message, details=details)
        raise TaxServiceError(message, details=details)

    def _get_one(self, model: type[ModelT], path: str, **kwargs: Any) -> ModelT:
        return model.model_validate(self._send("GET", path, **kwargs))

    def _get_many(self, model: type[ModelT], path: str, **kwargs: Any) -> list[ModelT]:
        return [model.model_validate(item) for item in self._send("GET", path, **kwargs)]

    def _write(
        self, model: type[ModelT], method: str, path: str, **kwargs: Any
    ) -> ModelT:
        return model.model_validate(self._send(method, path, **kwargs))

    # --- Establishments ---

    def list_establishments(
        self,
        status: str | None = None,
        city: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[EstablishmentResponse]:
        params = _query(status=status, city=city, skip=skip, limit=limit)
        return self._get_many(EstablishmentResponse, "/establishments/", params=params)

    def get_establishment(self, establishment_id: UUID) -> EstablishmentResponse:
        return self._get_one(EstablishmentResponse, f"/establishments/{establishment_id}")

    def create_establishment(self, data: EstablishmentCreate) -> EstablishmentResponse:
        return self._write(EstablishmentResponse, "POST", "/establishments/", json=_body(data))

    def update_establishment(
        self, establishment_id: UUID, data: EstablishmentUpdate
    ) -> EstablishmentResponse:
        return self._write(
            EstablishmentResponse,
            "PUT",
            f"/establishments/{establishment_id}",
            json=_body(data, exclude_unset=True),
        )

    def deactivate_establishment(self, establishment_id: UUID) -> EstablishmentResponse:
        return self._write(EstablishmentResponse, "DELETE", f"/establishments/{establishment_id}")

    # --- Clients ---

    def list_clients(
        self,
        establishment_id: UUID | None = None,
        search: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ClientResponse]:
        params = _query(establishmentId=establishment_id, search=search, skip=skip, limit=limit)
        return self._get_many(ClientResponse, "/clients/", params=params)

    def get_client(self, client_id: UUID) -> ClientResponse:
        return self._get_one(ClientResponse, f"/clients/{client_id}")

    def create_client(self, data: ClientCreate) -> ClientResponse:
        return self._write(ClientResponse, "POST", "/clients/", json=_body(data))

    def update_client(self, client_id: UUID, data: ClientUpdate) -> ClientResponse:
        return self._write(
            ClientResponse, "PUT", f"/clients/{client_id}", json=_body(data, exclude_unset=True)
        )

    def delete_client(self, client_id: UUID) -> None:
        self._send("DELETE", f"/clients/{client_id}")

    # --- Stays ---

    def list_stays(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[StayResponse]:
        params = _query(
            establishmentId=establishment_id,
            clientId=client_id,
            status=status,
            skip=skip,
            limit=limit,
        )
        return self._get_many(StayResponse, "/stays/", params=params)

    def get_stay(self, stay_id: UUID) -> StayResponse:
        return self._get_one(StayResponse, f"/stays/{stay_id}")

    def create_stay(self, data: StayCreate) -> StayResponse:
        return self._write(StayResponse, "POST", "/stays/", json=_body(data))

    def update_stay(self, stay_id: UUID, data: StayUpdate) -> StayResponse:
        return self._write(
            StayResponse, "PUT", f"/stays/{stay_id}", json=_body(data, exclude_unset=True)
        )

    def cancel_stay(self, stay_id: UUID) -> StayResponse:
        return self._write(StayResponse, "DELETE", f"/stays/{stay_id}")

    # --- Rate catalog ---

    def list_tax_configurations(
        self,
        establishment_id: UUID | None = None,
        active: bool | None = None,
    ) -> list[TaxConfigurationResponse]:
        params = _query(
            establishmentId=establishment_id,
            active=None if active is None else str(active).lower(),
        )
        return self._get_many(TaxConfigurationResponse, "/taxes/configurations", params=params)

    def get_tax_configuration(self, configuration_id: UUID) -> TaxConfigurationResponse:
        return self._get_one(TaxConfigurationResponse, f"/taxes/configurations/{configuration_id}")

    def create_tax_configuration(self, data: TaxConfigurationCreate) -> TaxConfigurationResponse:
        return self._write(
            TaxConfigurationResponse, "POST", "/taxes/configurations", json=_body(data)
        )

    def update_tax_configuration(
        self, configuration_id: UUID, data: TaxConfigurationCreate
    ) -> TaxConfigurationResponse:
        return self._write(
            TaxConfigurationResponse,
            "PUT",
            f"/taxes/configurations/{configuration_id}",
            json=_body(data),
        )

    def deactivate_tax_configuration(self, configuration_id: UUID) -> None:
        self._send("DELETE", f"/taxes/configurations/{configuration_id}")

    # --- Exemptions ---

    def list_exemptions(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        active: bool | None = None,
    ) -> list[TaxExemptionResponse]:
        params = _query(
            establishmentId=establishment_id,
            clientId=client_id,
            active=None if active is None else str(active).lower(),
        )
        return self._get_many(TaxExemptionResponse, "/taxes/exemptions", params=params)

    def get_exemption(self, exemption_id: UUID) -> TaxExemptionResponse:
        return self._get_one(TaxExemptionResponse, f"/taxes/exemptions/{exemption_id}")

    def create_exemption(self, data: TaxExemptionCreate) -> TaxExemptionResponse:
        return self._write(TaxExemptionResponse, "POST", "/taxes/exemptions", json=_body(data))

    def update_exemption(
        self, exemption_id: UUID, data: TaxExemptionCreate
    ) -> TaxExemptionResponse:
        return self._write(
            TaxExemptionResponse, "PUT", f"/taxes/exemptions/{exemption_id}", json=_body(data)
        )

    def deactivate_exemption(self, exemption_id: UUID) -> None:
        self._send("DELETE", f"/taxes/exemptions/{exemption_id}")

    # --- Calculations and reports ---

    def calculate(
        self,
        data: TaxCalculationRequest,
        idempotency_key: str | None = None,
    ) -> CalculationResultResponse:
        """Run a tax calculation. Pass ``idempotency_key`` to make retries safe."""
        headers = {"Idempotency-Key": idempotency_key} if idempotency_key else None
        return self._write(
            CalculationResultResponse,
            "POST",
            "/taxes/calculate",
            json=_body(data),
            headers=headers,
        )

    def list_calculations(
        self,
        establishment_id: UUID | None = None,
        client_id: UUID | None = None,
        stay_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[CalculationResultResponse]:
        params = _query(
            establishmentId=establishment_id,
            clientId=client_id,
            stayId=stay_id,
            startDate=start_date,
            endDate=end_date,
            skip=skip,
            limit=limit,
        )
        return self._get_many(CalculationResultResponse, "/taxes/calculations", params=params)

    def get_calculation(self, calculation_id: UUID) -> CalculationResultResponse:
        return self._get_one(CalculationResultResponse, f"/taxes/calculations/{calculation_id}")

    def get_report(
        self,
        start_date: date,
        end_date: date,
        establishment_id: UUID | None = None,
    ) -> TaxReportResponse:
        params = _query(startDate=start_date, endDate=end_date, establishmentId=establishment_id)
        return self._get_one(TaxReportResponse, "/taxes/report", params=params)
