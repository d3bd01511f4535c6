"""Tax API endpoints: rate catalog, exemptions, calculations and reports."""

from datetime import date
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, get_current_principal, require_admin
from hoteltax.core.database import get_db
from hoteltax.core.idempotency import (
    IdempotencyResult,
    check_idempotency,
    record_idempotency_response,
    release_idempotency_key,
)
from hoteltax.models.tax_calculation import TaxCalculation
from hoteltax.models.tax_configuration import TaxConfiguration
from hoteltax.models.tax_exemption import TaxExemption
from hoteltax.repositories.tax_calculation_repository import TaxCalculationRepository
from hoteltax.schemas.tax_calculation import CalculationResultResponse, TaxCalculationRequest
from hoteltax.schemas.tax_configuration import (
    TaxConfigurationCreate,
    TaxConfigurationResponse,
)
from hoteltax.schemas.tax_exemption import TaxExemptionCreate, TaxExemptionResponse
from hoteltax.schemas.tax_report import TaxReportResponse
from hoteltax.services.exemption_registry import ExemptionRegistryService
from hoteltax.services.rate_catalog import RateCatalogService
from hoteltax.services.tax_calculation_service import TaxCalculationService
from hoteltax.services.tax_report_service import TaxReportService

router = APIRouter()


# --- Rate catalog ---


@router.get(
    "/configurations",
    response_model=list[TaxConfigurationResponse],
    summary="List tax configurations",
    responses={401: {"description": "Unauthorized"}},
)
async def list_configurations(
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    active: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[TaxConfiguration]:
    """List tax configurations in catalog order."""
    return RateCatalogService(db).list_configurations(establishment_id, active)


@router.get(
    "/configurations/{configuration_id}",
    response_model=TaxConfigurationResponse,
    summary="Get tax configuration",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Tax configuration not found"},
    },
)
async def get_configuration(
    configuration_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxConfiguration:
    return RateCatalogService(db).get_configuration(configuration_id)


@router.post(
    "/configurations",
    response_model=TaxConfigurationResponse,
    status_code=201,
    summary="Create tax configuration",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        422: {"description": "Validation error"},
    },
)
async def create_configuration(
    data: TaxConfigurationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> TaxConfiguration:
    return RateCatalogService(db).upsert_configuration(data, actor=principal)


@router.put(
    "/configurations/{configuration_id}",
    response_model=TaxConfigurationResponse,
    summary="Update tax configuration",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "Tax configuration not found"},
        422: {"description": "Validation error"},
    },
)
async def update_configuration(
    configuration_id: UUID,
    data: TaxConfigurationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> TaxConfiguration:
    """Replace every field of a tax configuration."""
    return RateCatalogService(db).upsert_configuration(
        data, configuration_id=configuration_id, actor=principal
    )


@router.delete(
    "/configurations/{configuration_id}",
    status_code=204,
    summary="Deactivate tax configuration",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "Tax configuration not found"},
    },
)
async def deactivate_configuration(
    configuration_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> None:
    RateCatalogService(db).deactivate_configuration(configuration_id, actor=principal)


# --- Exemptions ---


@router.get(
    "/exemptions",
    response_model=list[TaxExemptionResponse],
    summary="List tax exemptions",
    responses={401: {"description": "Unauthorized"}},
)
async def list_exemptions(
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    client_id: UUID | None = Query(default=None, alias="clientId"),
    active: bool | None = Query(default=None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[TaxExemption]:
    return ExemptionRegistryService(db).list_exemptions(establishment_id, client_id, active)


@router.get(
    "/exemptions/{exemption_id}",
    response_model=TaxExemptionResponse,
    summary="Get tax exemption",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Tax exemption not found"},
    },
)
async def get_exemption(
    exemption_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxExemption:
    return ExemptionRegistryService(db).get_exemption(exemption_id)


@router.post(
    "/exemptions",
    response_model=TaxExemptionResponse,
    status_code=201,
    summary="Create tax exemption",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Client or tax configuration not found"},
        422: {"description": "Validation error"},
    },
)
async def create_exemption(
    data: TaxExemptionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxExemption:
    return ExemptionRegistryService(db).create_exemption(data, actor=principal)


@router.put(
    "/exemptions/{exemption_id}",
    response_model=TaxExemptionResponse,
    summary="Update tax exemption",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Tax exemption not found"},
        422: {"description": "Validation error"},
    },
)
async def update_exemption(
    exemption_id: UUID,
    data: TaxExemptionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxExemption:
    return ExemptionRegistryService(db).update_exemption(exemption_id, data, actor=principal)


@router.delete(
    "/exemptions/{exemption_id}",
    status_code=204,
    summary="Deactivate tax exemption",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Tax exemption not found"},
    },
)
async def deactivate_exemption(
    exemption_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> None:
    ExemptionRegistryService(db).deactivate_exemption(exemption_id, actor=principal)


# --- Calculations ---


@router.post(
    "/calculate",
    response_model=CalculationResultResponse,
    status_code=201,
    summary="Calculate taxes for line items",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Establishment, client or stay not found"},
        409: {"description": "Idempotency-Key conflict"},
        422: {"description": "Validation error"},
        503: {"description": "Calculation could not be recorded"},
    },
)
async def calculate_taxes(
    data: TaxCalculationRequest,
    request: Request,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxCalculation | JSONResponse:
    """Compute and record the tax breakdown of a set of line items.

    Send an ``Idempotency-Key`` header to make retries safe: a repeated key
    returns the recorded result instead of creating a second calculation.
    """
    idempotency = check_idempotency(request, db, principal.scope)
    if isinstance(idempotency, JSONResponse):
        return idempotency

    try:
        calculation = TaxCalculationService(db).calculate(
            establishment_id=data.establishment_id,
            items=data.items,
            client_id=data.client_id,
            stay_id=data.stay_id,
            check_for_exemptions=data.check_for_exemptions,
            effective_date=data.effective_date,
        )
    except Exception:
        if isinstance(idempotency, IdempotencyResult):
            release_idempotency_key(db, idempotency)
        raise

    if isinstance(idempotency, IdempotencyResult):
        body = CalculationResultResponse.model_validate(calculation).model_dump(
            mode="json", by_alias=True
        )
        record_idempotency_response(db, idempotency, 201, body)

    return calculation


@router.get(
    "/calculations",
    response_model=list[CalculationResultResponse],
    summary="List tax calculations",
    responses={401: {"description": "Unauthorized"}},
)
async def list_calculations(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    client_id: UUID | None = Query(default=None, alias="clientId"),
    stay_id: UUID | None = Query(default=None, alias="stayId"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[TaxCalculation]:
    """List recorded calculations, newest first."""
    repo = TaxCalculationRepository(db)
    filters: dict[str, Any] = {
        "establishment_id": establishment_id,
        "client_id": client_id,
        "stay_id": stay_id,
        "start_date": start_date,
        "end_date": end_date,
    }
    response.headers["X-Total-Count"] = str(repo.count(**filters))
    return repo.get_all(**filters, skip=skip, limit=limit)


@router.get(
    "/calculations/{calculation_id}",
    response_model=CalculationResultResponse,
    summary="Get tax calculation",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Tax calculation not found"},
    },
)
async def get_calculation(
    calculation_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> TaxCalculation:
    return TaxCalculationService(db).get_calculation(calculation_id)


# --- Reports ---


@router.get(
    "/report",
    response_model=TaxReportResponse,
    summary="Tax collection report",
    responses={
        401: {"description": "Unauthorized"},
        422: {"description": "Invalid date range"},
    },
)
async def get_report(
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> dict[str, Any]:
    """Aggregate recorded calculations over an inclusive range of local dates."""
    return TaxReportService(db).generate_report(start_date, end_date, establishment_id)
