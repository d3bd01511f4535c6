"""Audit log API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hoteltax.core.auth import Principal, get_current_principal
from hoteltax.core.database import get_db
from hoteltax.models.audit_log import AuditLog
from hoteltax.repositories.audit_log_repository import AuditLogRepository
from hoteltax.schemas.audit_log import AuditLogResponse

router = APIRouter()


@router.get(
    "/",
    response_model=list[AuditLogResponse],
    summary="List audit logs",
    responses={401: {"description": "Unauthorized"}},
)
async def list_audit_logs(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    establishment_id: UUID | None = Query(default=None, alias="establishmentId"),
    resource_type: str | None = Query(default=None, alias="resourceType"),
    resource_id: UUID | None = Query(default=None, alias="resourceId"),
    action: str | None = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
) -> list[AuditLog]:
    """List audit entries for tax configurations and exemptions, newest first."""
    return AuditLogRepository(db).get_all(
        skip=skip,
        limit=limit,
        establishment_id=establishment_id,
        resource_type=resource_type,
        resource_id=resource_id,
        action=action,
    )
