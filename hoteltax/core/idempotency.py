"""Idempotency support for API endpoints.

``check_idempotency`` looks at the ``Idempotency-Key`` header. If a completed
response exists for the key, it is returned as a JSONResponse to replay;
otherwise the key is reserved and an ``IdempotencyResult`` is returned so the
endpoint can call ``record_idempotency_response`` once it has a response, or
``release_idempotency_key`` when processing failed.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hoteltax.core.errors import ConflictError
from hoteltax.repositories.idempotency_repository import IdempotencyRepository


@dataclass
class IdempotencyResult:
    """Holds pending idempotency key info for later recording."""

    scope: str
    key: str
    method: str
    path: str


def check_idempotency(
    request: Request,
    db: Session,
    scope: str,
) -> JSONResponse | IdempotencyResult | None:
    """Check the ``Idempotency-Key`` header for a cached response.

    Returns:
        - ``None`` if no ``Idempotency-Key`` header is present.
        - A ``JSONResponse`` with the cached response and an
          ``Idempotency-Replayed: true`` header if a completed record exists.
        - An ``IdempotencyResult`` if this is a new request to be recorded.

    Raises ConflictError when the key is reserved by a request still in flight
    or was used for a different endpoint.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    repo = IdempotencyRepository(db)
    existing = repo.get_by_key(scope, key)

    if existing is not None:
        if existing.request_path != request.url.path or existing.request_method != request.method:
            raise ConflictError("Idempotency-Key was already used for a different request")
        if existing.response_status is None:
            raise ConflictError("A request with this Idempotency-Key is still being processed")
        response = JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
        )
        response.headers["Idempotency-Replayed"] = "true"
        return response

    repo.create(
        scope=scope,
        idempotency_key=key,
        request_method=request.method,
        request_path=request.url.path,
    )
    return IdempotencyResult(scope=scope, key=key, method=request.method, path=request.url.path)


def record_idempotency_response(
    db: Session,
    pending: IdempotencyResult,
    status: int,
    body: dict[str, Any],
) -> None:
    """Persist the endpoint response so subsequent calls return the cached result."""
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(pending.scope, pending.key)
    if record is not None:
        repo.update_response(record, status, body)


def release_idempotency_key(db: Session, pending: IdempotencyResult) -> None:
    """Drop a reservation whose request failed so the caller can retry with it."""
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(pending.scope, pending.key)
    if record is not None and record.response_status is None:
        repo.delete(record)
