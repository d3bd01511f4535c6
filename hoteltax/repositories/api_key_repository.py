import hashlib
import secrets
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from hoteltax.core.config import settings
from hoteltax.models.api_key import ApiKey
from hoteltax.schemas.api_key import ApiKeyCreate


def generate_api_key() -> str:
    """Generate a random API key carrying the configured prefix."""
    return settings.API_KEY_PREFIX + secrets.token_hex(32)


def hash_api_key(raw_key: str) -> str:
    """SHA-256 hash of the raw API key."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


class ApiKeyRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, data: ApiKeyCreate) -> tuple[ApiKey, str]:
        """Create a new API key. Returns (api_key_model, raw_key)."""
        raw_key = generate_api_key()
        api_key = ApiKey(
            key_hash=hash_api_key(raw_key),
            key_prefix=raw_key[:12],
            name=data.name,
            role=data.role,
            expires_at=data.expires_at,
        )
        self.db.add(api_key)
        self.db.commit()
        self.db.refresh(api_key)
        return api_key, raw_key

    def get_by_hash(self, key_hash: str) -> ApiKey | None:
        return self.db.query(ApiKey).filter(ApiKey.key_hash == key_hash).first()

    def get_by_id(self, api_key_id: UUID) -> ApiKey | None:
        return self.db.query(ApiKey).filter(ApiKey.id == api_key_id).first()

    def get_all(self, skip: int = 0, limit: int = 100) -> list[ApiKey]:
        return (
            self.db.query(ApiKey)
            .order_by(ApiKey.created_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(ApiKey).count()

    def revoke(self, api_key_id: UUID) -> ApiKey | None:
        api_key = self.get_by_id(api_key_id)
        if not api_key:
            return None
        api_key.status = "revoked"  # type: ignore[assignment]
        self.db.commit()
        self.db.refresh(api_key)
        return api_key

    def rotate(self, api_key_id: UUID) -> tuple[ApiKey, str] | None:
        """Revoke an active key and issue a new one with the same settings."""
        old_key = self.get_by_id(api_key_id)
        if not old_key or old_key.status != "active":
            return None

        old_key.status = "revoked"  # type: ignore[assignment]

        new_data = ApiKeyCreate(
            name=old_key.name,  # type: ignore[arg-type]
            role=old_key.role,  # type: ignore[arg-type]
            expires_at=old_key.expires_at,  # type: ignore[arg-type]
        )
        return self.create(new_data)

    def update_last_used(self, api_key: ApiKey, now: datetime) -> None:
        api_key.last_used_at = now  # type: ignore[assignment]
        self.db.commit()
