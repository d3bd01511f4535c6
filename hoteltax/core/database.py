"""Engine, session factory and the per-request session dependency."""

from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from hoteltax.core.config import settings


def _engine_options(dsn: str) -> dict[str, Any]:
    if dsn.startswith("sqlite"):
        # TestClient and the arq worker touch the connection from other threads.
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.APP_DATABASE_DSN, **_engine_options(settings.APP_DATABASE_DSN))
SessionLocal = sessionmaker(bind=engine, autoflush=False)
Base: Any = declarative_base()


def get_db() -> Iterator[Session]:
    """Yield one session per request and roll back whatever was left uncommitted."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
