"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hoteltax.core import database as db_module
from hoteltax.core.config import settings
from hoteltax.core.database import Base, get_db
from hoteltax.models.client import Client
from hoteltax.models.establishment import Establishment
from hoteltax.models.stay import Stay
from hoteltax.models.tax_configuration import TaxConfiguration
from hoteltax.models.tax_exemption import TaxExemption

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known establishment seeded for every test
DEFAULT_ESTABLISHMENT_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


def _seed_default_establishment(session: Session) -> None:
    establishment = (
        session.query(Establishment)
        .filter(Establishment.id == DEFAULT_ESTABLISHMENT_ID)
        .first()
    )
    if establishment is None:
        session.add(
            Establishment(
                id=DEFAULT_ESTABLISHMENT_ID,
                name="Hotel Memling",
                city="Kinshasa",
                country="CD",
                total_rooms=120,
                currency="CDF",
                timezone="Africa/Kinshasa",
            )
        )
        session.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_default_establishment(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture(autouse=True)
def anonymous_access():
    """Admit unauthenticated requests unless a test turns auth back on."""
    original = settings.AUTH_REQUIRED
    settings.AUTH_REQUIRED = False
    yield
    settings.AUTH_REQUIRED = original


@pytest.fixture
def db_session():
    """Create a database session for direct repository and service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def establishment_id():
    return DEFAULT_ESTABLISHMENT_ID


@pytest.fixture
def other_establishment(db_session):
    establishment = Establishment(
        name="Pullman Lubumbashi",
        city="Lubumbashi",
        currency="USD",
        timezone="Africa/Lubumbashi",
    )
    db_session.add(establishment)
    db_session.commit()
    db_session.refresh(establishment)
    return establishment


@pytest.fixture
def guest(db_session):
    """A client of the default establishment."""
    client = Client(
        establishment_id=DEFAULT_ESTABLISHMENT_ID,
        first_name="Amani",
        last_name="Kabila",
        document_type="passport",
        document_number="OB1234567",
        nationality="CD",
    )
    db_session.add(client)
    db_session.commit()
    db_session.refresh(client)
    return client


@pytest.fixture
def stay(db_session, guest):
    stay = Stay(
        establishment_id=DEFAULT_ESTABLISHMENT_ID,
        client_id=guest.id,
        room="204",
        check_in_date=date(2024, 3, 1),
        check_out_date=date(2024, 3, 4),
    )
    db_session.add(stay)
    db_session.commit()
    db_session.refresh(stay)
    return stay


def make_configuration(
    db: Session,
    name: str,
    rate: str,
    type: str,
    applicable_to: list[str] | None = None,
    establishment_id: uuid.UUID = DEFAULT_ESTABLISHMENT_ID,
    active: bool = True,
) -> TaxConfiguration:
    configuration = TaxConfiguration(
        establishment_id=establishment_id,
        name=name,
        rate=Decimal(rate),
        type=type,
        applicable_to=applicable_to or ["accommodation"],
        active=active,
    )
    db.add(configuration)
    db.commit()
    db.refresh(configuration)
    return configuration


def make_exemption(
    db: Session,
    client_id: uuid.UUID,
    tax_configuration_id: uuid.UUID,
    valid_from: date,
    valid_until: date,
    establishment_id: uuid.UUID = DEFAULT_ESTABLISHMENT_ID,
    active: bool = True,
) -> TaxExemption:
    exemption = TaxExemption(
        establishment_id=establishment_id,
        client_id=client_id,
        tax_configuration_id=tax_configuration_id,
        reason="Diplomatic mission",
        document_number="DIPL-0042",
        valid_from=valid_from,
        valid_until=valid_until,
        active=active,
    )
    db.add(exemption)
    db.commit()
    db.refresh(exemption)
    return exemption


@pytest.fixture
def city_tax(db_session):
    """20% city tax on accommodation."""
    return make_configuration(db_session, "City tax", "20", "percentage")


@pytest.fixture
def tourism_levy(db_session, city_tax):
    """2.50 per night tourism levy, created after the city tax."""
    return make_configuration(db_session, "Tourism levy", "2.5", "fixed_per_night")
