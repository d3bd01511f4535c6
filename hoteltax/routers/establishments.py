"""Establishment directory endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, get_current_principal, require_admin
from hoteltax.core.database import get_db
from hoteltax.core.errors import NotFound
from hoteltax.models.establishment import Establishment
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.schemas.establishment import (
    EstablishmentCreate,
    EstablishmentResponse,
    EstablishmentUpdate,
)

router = APIRouter()


@router.get(
    "/",
    response_model=list[EstablishmentResponse],
    summary="List establishments",
    responses={401: {"description": "Unauthorized"}},
)
async def list_establishments(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    status: str | None = Query(default=None),
    city: str | None = Query(default=None),
    order_by: str | None = Query(default=None, alias="orderBy"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[Establishment]:
    """List establishments with optional status and city filters."""
    repo = EstablishmentRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(status=status, city=city))
    return repo.get_all(skip=skip, limit=limit, status=status, city=city, order_by=order_by)


@router.get(
    "/{establishment_id}",
    response_model=EstablishmentResponse,
    summary="Get establishment",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Establishment not found"},
    },
)
async def get_establishment(
    establishment_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Establishment:
    establishment = EstablishmentRepository(db).get_by_id(establishment_id)
    if not establishment:
        raise NotFound("Establishment", establishment_id)
    return establishment


@router.post(
    "/",
    response_model=EstablishmentResponse,
    status_code=201,
    summary="Create establishment",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        422: {"description": "Validation error"},
    },
)
async def create_establishment(
    data: EstablishmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> Establishment:
    return EstablishmentRepository(db).create(data)


@router.put(
    "/{establishment_id}",
    response_model=EstablishmentResponse,
    summary="Update establishment",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "Establishment not found"},
        422: {"description": "Validation error"},
    },
)
async def update_establishment(
    establishment_id: UUID,
    data: EstablishmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> Establishment:
    establishment = EstablishmentRepository(db).update(establishment_id, data)
    if not establishment:
        raise NotFound("Establishment", establishment_id)
    return establishment


@router.delete(
    "/{establishment_id}",
    response_model=EstablishmentResponse,
    summary="Deactivate establishment",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "Establishment not found"},
    },
)
async def deactivate_establishment(
    establishment_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> Establishment:
    """Mark an establishment inactive. Its tax history is kept."""
    establishment = EstablishmentRepository(db).deactivate(establishment_id)
    if not establishment:
        raise NotFound("Establishment", establishment_id)
    return establishment
