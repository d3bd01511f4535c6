"""API key management endpoints. Administrators only."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, require_admin
from hoteltax.core.database import get_db
from hoteltax.core.errors import NotFound
from hoteltax.models.api_key import ApiKey
from hoteltax.repositories.api_key_repository import ApiKeyRepository
from hoteltax.schemas.api_key import ApiKeyCreate, ApiKeyCreateResponse, ApiKeyResponse

router = APIRouter()


def _with_raw_key(api_key: ApiKey, raw_key: str) -> dict[str, Any]:
    response = ApiKeyResponse.model_validate(api_key).model_dump()
    response["raw_key"] = raw_key
    return response


@router.post(
    "/",
    response_model=ApiKeyCreateResponse,
    status_code=201,
    summary="Create API key",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        422: {"description": "Validation error"},
    },
)
async def create_api_key(
    data: ApiKeyCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> dict[str, Any]:
    """Generate a new API key. The raw key is only returned here."""
    api_key, raw_key = ApiKeyRepository(db).create(data)
    return _with_raw_key(api_key, raw_key)


@router.get(
    "/",
    response_model=list[ApiKeyResponse],
    summary="List API keys",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
    },
)
async def list_api_keys(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> list[ApiKey]:
    repo = ApiKeyRepository(db)
    response.headers["X-Total-Count"] = str(repo.count())
    return repo.get_all(skip=skip, limit=limit)


@router.delete(
    "/{api_key_id}",
    status_code=204,
    summary="Revoke API key",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "API key not found"},
    },
)
async def revoke_api_key(
    api_key_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> None:
    if not ApiKeyRepository(db).revoke(api_key_id):
        raise NotFound("API key", api_key_id)


@router.post(
    "/{api_key_id}/rotate",
    response_model=ApiKeyCreateResponse,
    status_code=201,
    summary="Rotate API key",
    responses={
        401: {"description": "Unauthorized"},
        403: {"description": "Administrator role required"},
        404: {"description": "Active API key not found"},
    },
)
async def rotate_api_key(
    api_key_id: UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_admin),
) -> dict[str, Any]:
    """Revoke an active key and issue a replacement with the same name and role."""
    result = ApiKeyRepository(db).rotate(api_key_id)
    if result is None:
        raise NotFound("Active API key", api_key_id)
    api_key, raw_key = result
    return _with_raw_key(api_key, raw_key)
