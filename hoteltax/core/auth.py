"""Caller identity.

Every request carries a bearer credential: either a JWT issued by the
platform's authentication service or a platform API key. The resolved
identity is handed to endpoints as an explicit ``Principal``.
"""

from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from hoteltax.core.config import settings
from hoteltax.core.database import get_db
from hoteltax.models.shared import as_utc, utc_now
from hoteltax.repositories.api_key_repository import ApiKeyRepository, hash_api_key

ANONYMOUS_SUBJECT = "anonymous"


@dataclass(frozen=True)
class Principal:
    subject: str
    role: str
    auth_type: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def scope(self) -> str:
        """Key under which per-caller state (idempotency keys) is stored."""
        return f"{self.auth_type}:{self.subject}"


def decode_access_token(token: str) -> Principal:
    """Verify a JWT issued by the authentication service.

    Raises jwt.ExpiredSignatureError or jwt.InvalidTokenError on failure.
    """
    payload = jwt.decode(
        token,
        settings.AUTH_JWT_SECRET,
        algorithms=[settings.AUTH_JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
    return Principal(
        subject=str(payload["sub"]),
        role=str(payload.get("role", "staff")),
        auth_type="token",
    )


def get_current_principal(
    request: Request,
    db: Session = Depends(get_db),
) -> Principal:
    """Resolve the caller from the Authorization header.

    Without a header the caller is anonymous when AUTH_REQUIRED is off
    (local development) and rejected otherwise.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        if not settings.AUTH_REQUIRED:
            return Principal(subject=ANONYMOUS_SUBJECT, role="admin", auth_type="anonymous")
        raise HTTPException(status_code=401, detail="Authorization header is required")

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    credential = auth_header[7:]
    if not credential:
        raise HTTPException(status_code=401, detail="Bearer credential is required")

    if credential.startswith(settings.API_KEY_PREFIX):
        return _principal_from_api_key(credential, db)

    try:
        return decode_access_token(credential)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired") from None
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token") from None


def _principal_from_api_key(raw_key: str, db: Session) -> Principal:
    repo = ApiKeyRepository(db)
    api_key = repo.get_by_hash(hash_api_key(raw_key))

    if not api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")

    if api_key.status == "revoked":
        raise HTTPException(status_code=401, detail="API key has been revoked")

    now = utc_now()
    if api_key.expires_at and as_utc(api_key.expires_at) < now:  # type: ignore[arg-type]
        raise HTTPException(status_code=401, detail="API key has expired")

    repo.update_last_used(api_key, now)

    return Principal(subject=str(api_key.id), role=str(api_key.role), auth_type="api_key")


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(status_code=403, detail="Administrator role required")
    return principal
