"""Client directory endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, get_current_principal
from hoteltax.core.database import get_db
from hoteltax.core.errors import ConflictError, NotFound
from hoteltax.models.client import Client
from hoteltax.repositories.client_repository import ClientRepository
from hoteltax.repositories.establishment_repository import EstablishmentRepository
from hoteltax.schemas.client import ClientCreate, ClientResponse, ClientUpdate

router = APIRouter()


@router.get(
    "/",
    response_model=list[ClientResponse],
    summary="List clients",
    responses={401: {"description": "Unauthorized"}},
)
async def list_clients(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    search: str | None = Query(default=None, max_length=255),
    order_by: str | None = Query(default=None, alias="orderBy"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[Client]:
    """List clients, optionally searching names and document numbers."""
    repo = ClientRepository(db)
    response.headers["X-Total-Count"] = str(repo.count(establishment_id, search))
    return repo.get_all(
        establishment_id=establishment_id,
        search=search,
        skip=skip,
        limit=limit,
        order_by=order_by,
    )


@router.get(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Get client",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Client not found"},
    },
)
async def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Client:
    client = ClientRepository(db).get_by_id(client_id)
    if not client:
        raise NotFound("Client", client_id)
    return client


@router.post(
    "/",
    response_model=ClientResponse,
    status_code=201,
    summary="Create client",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Establishment not found"},
        422: {"description": "Validation error"},
    },
)
async def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Client:
    if EstablishmentRepository(db).get_by_id(data.establishment_id) is None:
        raise NotFound("Establishment", data.establishment_id, field="establishmentId")
    return ClientRepository(db).create(data)


@router.put(
    "/{client_id}",
    response_model=ClientResponse,
    summary="Update client",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Client not found"},
        422: {"description": "Validation error"},
    },
)
async def update_client(
    client_id: UUID,
    data: ClientUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> Client:
    client = ClientRepository(db).update(client_id, data)
    if not client:
        raise NotFound("Client", client_id)
    return client


@router.delete(
    "/{client_id}",
    status_code=204,
    summary="Delete client",
    responses={
        401: {"description": "Unauthorized"},
        404: {"description": "Client not found"},
        409: {"description": "Client is referenced by stays or tax records"},
    },
)
async def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> None:
    """Delete a client that no stay, exemption or calculation refers to."""
    repo = ClientRepository(db)
    if repo.get_by_id(client_id) is None:
        raise NotFound("Client", client_id)
    if repo.is_referenced(client_id):
        raise ConflictError(
            "Client is referenced by stays, tax exemptions or calculations and cannot be deleted"
        )
    repo.delete(client_id)
