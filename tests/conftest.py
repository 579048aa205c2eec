import os
from datetime import UTC, datetime, timedelta

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db import Base

load_dotenv(os.path.join(os.getcwd(), ".env"))

from app.models.catalog import Coverage, Location, Price, Provider, Sla  # noqa: E402
from app.models.provisioning import (  # noqa: E402
    CommunicationType,
    Installation,
    InstallationStatus,
)
from app.services.provisioning.allocation import AllocationEngine  # noqa: E402
from app.services.provisioning.installations import InstallationService  # noqa: E402
from app.services.provisioning.repository import SqlCatalogRepository  # noqa: E402

M2M_PROVIDER_ID = 99


def _resolve_test_database_url() -> str | None:
    def _running_in_container() -> bool:
        return os.path.exists("/.dockerenv") or os.getenv("RUNNING_IN_DOCKER") == "1"

    raw_url = os.getenv("TEST_DATABASE_URL")
    if not raw_url:
        return None

    url = make_url(raw_url)
    if url.drivername.startswith("postgresql"):
        if url.database != "site_provisioning_test":
            url = url.set(database="site_provisioning_test")
        if url.host == "db" and not _running_in_container():
            url = url.set(host="localhost")
        return url.render_as_string(hide_password=False)

    return raw_url


@pytest.fixture(scope="session")
def engine():
    database_url = _resolve_test_database_url()
    if database_url:
        engine = create_engine(database_url)
    else:
        engine = create_engine(
            "sqlite+pysqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    Base.metadata.create_all(engine)

    return engine


@pytest.fixture()
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


# ============================================================================
# Catalog Fixtures
# ============================================================================


@pytest.fixture()
def providers(db_session):
    rows = [
        Provider(id=1, provider="Alpha Net"),
        Provider(id=2, provider="Beta Link"),
        Provider(id=3, provider="Gamma Sat"),
        Provider(id=M2M_PROVIDER_ID, provider="M2M Carrier"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {row.id: row for row in rows}


@pytest.fixture()
def offer(db_session, providers):
    """Register a provider's catalog rows for a location.

    ``days``/``price`` of None leave the SLA/price row out; ``covered=False``
    leaves the coverage row out.
    """

    def _offer(
        location_name: str,
        provider_id: int,
        days: int | None = None,
        price: int | None = None,
        province: str | None = None,
        avail: bool = True,
        covered: bool = True,
    ) -> Location:
        location = db_session.query(Location).filter(Location.location == location_name).first()
        if not location:
            location = Location(location=location_name, province=province or location_name)
            db_session.add(location)
            db_session.flush()
        if covered:
            db_session.add(Coverage(location_id=location.id, provider_id=provider_id, avail=avail))
        if days is not None:
            db_session.add(Sla(location_id=location.id, provider_id=provider_id, days=days))
        if price is not None:
            db_session.add(Price(location_id=location.id, provider_id=provider_id, price=price))
        db_session.commit()
        return location

    return _offer


@pytest.fixture()
def make_installation(db_session, providers):
    """Insert an installation row directly, bypassing allocation."""
    counter = {"n": 0}

    def _make(
        provider_id: int | None = 1,
        province: str | None = "DKI Jakarta",
        status: InstallationStatus = InstallationStatus.pending,
        location: str = "Jakarta",
        batch_id: str = "BATCH-1",
        created_at: datetime | None = None,
        communication: CommunicationType = CommunicationType.VSAT,
    ) -> Installation:
        counter["n"] += 1
        installation = Installation(
            location=location,
            address=f"Jl. Sudirman No. {counter['n']}",
            contact="Branch PIC",
            area=province,
            province=province,
            communication=communication,
            provider_id=provider_id,
            provider=None,
            price_id=None if communication == CommunicationType.M2M else 1,
            price=None if communication == CommunicationType.M2M else 100,
            days=None if communication == CommunicationType.M2M else 5,
            status=status,
            batch_id=batch_id,
            created_at=created_at or datetime.now(UTC) - timedelta(minutes=counter["n"]),
        )
        db_session.add(installation)
        db_session.commit()
        db_session.refresh(installation)
        return installation

    return _make


@pytest.fixture()
def allocator(db_session):
    return AllocationEngine(
        SqlCatalogRepository(db_session),
        saturation_threshold=10,
        m2m_provider_id=M2M_PROVIDER_ID,
        m2m_provider_name="M2M Carrier",
    )


@pytest.fixture()
def installation_service(db_session, allocator):
    return InstallationService(db_session, allocator)
