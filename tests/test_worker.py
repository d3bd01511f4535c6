"""Tests for the arq housekeeping worker."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest

from hoteltax.core import database as db_module
from hoteltax.repositories.idempotency_repository import IdempotencyRepository
from hoteltax.worker import WorkerSettings, purge_idempotency_records


def reserve(repo: IdempotencyRepository, key: str, age: timedelta | None = None) -> None:
    record = repo.create(
        scope="token:user-42",
        idempotency_key=key,
        request_method="POST",
        request_path="/taxes/calculate",
    )
    if age is not None:
        record.created_at = datetime.now(UTC) - age  # type: ignore[assignment]
        repo.db.commit()


class TestPurgeIdempotencyRecords:
    @pytest.mark.asyncio
    async def test_purges_only_expired_records(self, db_session):
        repo = IdempotencyRepository(db_session)
        reserve(repo, "old-key", age=timedelta(hours=25))
        reserve(repo, "new-key")

        with patch("hoteltax.worker.SessionLocal", db_module.SessionLocal):
            deleted = await purge_idempotency_records({})

        assert deleted == 1
        db_session.expire_all()
        assert repo.get_by_key("token:user-42", "old-key") is None
        assert repo.get_by_key("token:user-42", "new-key") is not None

    @pytest.mark.asyncio
    async def test_nothing_to_purge(self):
        with patch("hoteltax.worker.SessionLocal", db_module.SessionLocal):
            assert await purge_idempotency_records({}) == 0

    @pytest.mark.asyncio
    async def test_session_is_closed_when_purge_fails(self):
        with (
            patch("hoteltax.worker.SessionLocal") as session_factory,
            patch.object(
                IdempotencyRepository, "delete_expired", side_effect=RuntimeError("boom")
            ),
            pytest.raises(RuntimeError),
        ):
            await purge_idempotency_records({})
        session_factory.return_value.close.assert_called_once()

    def test_purge_sees_the_request_database(self, db_session):
        """The worker's session factory reaches the same database as requests."""
        reserve(IdempotencyRepository(db_session), "old-key", age=timedelta(hours=25))

        worker_db = db_module.SessionLocal()
        try:
            assert IdempotencyRepository(worker_db).delete_expired(24) == 1
        finally:
            worker_db.close()


class TestWorkerSettings:
    def test_registers_purge_job(self):
        assert purge_idempotency_records in WorkerSettings.functions

    def test_purge_runs_on_cron(self):
        cron_funcs = [job.coroutine for job in WorkerSettings.cron_jobs]
        assert purge_idempotency_records in cron_funcs
