"""Stay record endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, get_current_principal
from hoteltax.core.database import get_db
from hoteltax.core.errors import NotFound, ValidationError
from hoteltax.models.stay import Stay, StayStatus
from hoteltax.repositories.client_repository import ClientRepository
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.repositories.stay_repository import StayRepository
from hoteltax.schemas.stay import StayCreate, StayResponse, StayUpdate

router = APIRouter()


def _get_stay(stay_id: UUID, db: Session) -> Stay:
    stay = StayRepository(db).get_by_id(stay_id)
    if not stay:
        raise NotFound("Stay", stay_id)
    return stay


@router.get(
    "/",
    response_model=list[StayResponse],
    summary="List stays",
    responses={401: {"description": "Unauthorized"}},
)
async def list_stays(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    client_id: UUID | None = Query(default=None, alias="clientId"),
    status: StayStatus | None = Query(default=None),
    order_by: str | None = Query(default=None, alias="orderBy"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[Stay]:
    repo = StayRepository(db)
    status_value = status.value if status else None
    response.headers["X-Total-Count"] = str(
        repo.count(establishment_id, client_id, status_value)
    )
    return repo.get_all(
        establishment_id=establishment_id,
        client_id=client_id,
        status=status_value,
        skip=skip,
        limit=limit,
        order_by=order_by,
    )


@router.get(
    "/{stay_id}",
    response_model=StayResponse,
    summary="Get stay",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Stay not found"},
    },
)
async def get_stay(
    stay_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Stay:
    return _get_stay(stay_id, db)


@router.post(
    "/",
    response_model=StayResponse,
    status_code=201,
    summary="Create stay",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Establishment or client not found"},
        422: {"description": "Validation error"},
    },
)
async def create_stay(
    data: StayCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Stay:
    if EstablishmentRepository(db).get_by_id(data.establishment_id) is None:
        raise NotFound("Establishment", data.establishment_id, field="establishmentId")
    client = ClientRepository(db).get_by_id(data.client_id)
    if client is None:
        raise NotFound("Client", data.client_id, field="clientId")
    if client.establishment_id != data.establishment_id:
        raise ValidationError.for_field("clientId", "Client belongs to a different establishment")
    return StayRepository(db).create(data)


@router.put(
    "/{stay_id}",
    response_model=StayResponse,
    summary="Update stay",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Stay not found"},
        422: {"description": "Validation error"},
    },
)
async def update_stay(
    stay_id: UUID,
    data: StayUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Stay:
    stay = _get_stay(stay_id, db)
    check_in = data.check_in_date or stay.check_in_date
    check_out = data.check_out_date or stay.check_out_date
    if check_out <= check_in:
        raise ValidationError.for_field("checkOutDate", "checkOutDate must be after checkInDate")
    return StayRepository(db).update(stay, data)


@router.delete(
    "/{stay_id}",
    response_model=StayResponse,
    summary="Cancel stay",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Stay not found"},
    },
)
async def cancel_stay(
    stay_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Stay:
    """Mark a stay cancelled. Calculations that reference it are kept."""
    stay = StayRepository(db).cancel(stay_id)
    if not stay:
        raise NotFound("Stay", stay_id)
    return stay
