"""arq worker for housekeeping jobs.

Run with ``arq hoteltax.worker.WorkerSettings``.
"""

import logging
from typing import Any

from arq import cron
from arq.connections import RedisSettings

from hoteltax.core.config import settings
from hoteltax.core.database import SessionLocal
from hoteltax.repositories.idempotency_repository import IdempotencyRepository

logger = logging.getLogger(__name__)

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def purge_idempotency_records(ctx: dict[str, Any]) -> int:
    """Delete idempotency records older than IDEMPOTENCY_TTL_HOURS.

    Runs hourly.
    """
    db = SessionLocal()
    try:
        count = IdempotencyRepository(db).delete_expired(settings.IDEMPOTENCY_TTL_HOURS)
        if count > 0:
            logger.info("Purged %d expired idempotency records", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [purge_idempotency_records]
    cron_jobs = [
        cron(purge_idempotency_records, minute={0}),  # hourly
    ]
    redis_settings = redis_settings
