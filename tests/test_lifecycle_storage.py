"""Lifecycle behaviour that needs real commits and rollbacks.

These tests run against a file-backed SQLite database instead of the shared
outer-transaction session, because the services roll back on failure.
"""

import threading

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from app.db import Base, get_db
from app.main import app
from app.models.provisioning import CommunicationType, Installation, InstallationStatus, Relocation, RequestStatus
from app.schemas.provisioning import DismantleCreate, InstallationCreate, RelocationCreate
from app.services.provisioning.allocation import AllocationEngine
from app.services.provisioning.dismantles import DismantleService
from app.services.provisioning.errors import PreconditionFailed, StorageError
from app.services.provisioning.installations import InstallationService
from app.services.provisioning.relocations import RelocationService
from app.services.provisioning.repository import SqlCatalogRepository


def _enable_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
def file_engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'site.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(file_engine):
    return sessionmaker(bind=file_engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def broken_session(tmp_path):
    # The parent directory is never created, so every connect attempt fails.
    engine = create_engine(f"sqlite:///{tmp_path / 'missing' / 'site.db'}")
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture()
def failing_installation_updates(db_session):
    """Make every UPDATE on the installations table fail until the test ends."""
    engine = db_session.get_bind()

    def _fail(conn, cursor, statement, parameters, context, executemany):
        if statement.startswith("UPDATE installations"):
            raise OperationalError(statement, parameters, Exception("disk I/O error"))

    def _install():
        event.listen(engine, "before_cursor_execute", _fail)

    try:
        yield _install
    finally:
        if event.contains(engine, "before_cursor_execute", _fail):
            event.remove(engine, "before_cursor_execute", _fail)


def _relocation(installation_id: int) -> RelocationCreate:
    return RelocationCreate(
        installation_id=installation_id,
        new_location="Bandung",
        new_address="Jl. Asia Afrika 8",
        new_area="Bandung Kota",
        new_communication=CommunicationType.M2M,
        new_contact="Sari",
        batch_id="RELOC-1",
    )


# ============================================================================
# Unreachable database
# ============================================================================


def test_create_installation_on_unreachable_database(broken_session):
    service = InstallationService(broken_session, AllocationEngine(SqlCatalogRepository(broken_session)))
    payload = InstallationCreate(
        location="Jakarta",
        address="Jl. Thamrin 1",
        contact="Budi",
        area="Jakarta Pusat",
        batch_id="BATCH-100",
    )

    with pytest.raises(StorageError) as exc_info:
        service.create(payload)

    assert exc_info.value.status_code == 503
    assert exc_info.value.retryable is True
    assert isinstance(exc_info.value.__cause__, OperationalError)


def test_lookups_on_unreachable_database(broken_session):
    with pytest.raises(StorageError):
        RelocationService(broken_session).get(1)
    with pytest.raises(StorageError):
        DismantleService(broken_session).list()


def test_unreachable_database_renders_retryable_503(broken_session):
    def _override_get_db():
        yield broken_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        response = TestClient(app).get("/provisioning/installations/1")
    finally:
        app.dependency_overrides.pop(get_db, None)

    assert response.status_code == 503
    assert response.json() == {
        "code": "storage_error",
        "detail": "Storage failure during get_installation",
        "retryable": True,
    }


# ============================================================================
# Relocation approval
# ============================================================================


def test_approve_relocation_of_dismantled_installation(db_session, make_installation):
    installation = make_installation(status=InstallationStatus.approved)
    relocations = RelocationService(db_session)
    dismantles = DismantleService(db_session)
    relocation = relocations.create(_relocation(installation.id))
    dismantle = dismantles.create(DismantleCreate(installation_id=installation.id, batch_id="DIS-1"))
    dismantles.approve(dismantle.id)

    with pytest.raises(PreconditionFailed):
        relocations.approve(relocation.id)

    db_session.expire_all()
    installation = db_session.get(Installation, installation.id)
    assert installation.status == InstallationStatus.dismantled
    assert installation.location == "Jakarta"
    assert installation.communication == CommunicationType.VSAT
    assert db_session.get(Relocation, relocation.id).status == RequestStatus.pending


def test_approve_relocation_is_all_or_nothing(db_session, make_installation, failing_installation_updates):
    installation = make_installation(status=InstallationStatus.approved)
    relocations = RelocationService(db_session)
    relocation = relocations.create(_relocation(installation.id))
    failing_installation_updates()

    with pytest.raises(StorageError) as exc_info:
        relocations.approve(relocation.id)

    assert exc_info.value.detail == "Storage failure during approve_relocation"
    db_session.expire_all()
    assert db_session.get(Relocation, relocation.id).status == RequestStatus.pending
    installation = db_session.get(Installation, installation.id)
    assert installation.location == "Jakarta"
    assert installation.contact == "Branch PIC"
    assert installation.communication == CommunicationType.VSAT
    assert installation.relocation_status is True


def test_approve_dismantle_is_all_or_nothing(db_session, make_installation, failing_installation_updates):
    installation = make_installation(status=InstallationStatus.approved)
    dismantles = DismantleService(db_session)
    dismantle = dismantles.create(DismantleCreate(installation_id=installation.id, batch_id="DIS-1"))
    failing_installation_updates()

    with pytest.raises(StorageError):
        dismantles.approve(dismantle.id)

    db_session.expire_all()
    assert dismantles.get(dismantle.id).status == RequestStatus.pending
    installation = db_session.get(Installation, installation.id)
    assert installation.status == InstallationStatus.approved
    assert installation.dismantle_status is True


def test_concurrent_relocation_approvals_apply_once(db_session, session_factory, make_installation):
    installation = make_installation(status=InstallationStatus.approved)
    relocation = RelocationService(db_session).create(_relocation(installation.id))
    barrier = threading.Barrier(2)
    results: list[bool] = []
    errors: list[Exception] = []
    lock = threading.Lock()

    def _approve():
        session = session_factory()
        try:
            service = RelocationService(session)
            barrier.wait(timeout=10)
            result = service.approve(relocation.id)
            with lock:
                results.append(result.updated)
        except Exception as exc:
            with lock:
                errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=_approve) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert sorted(results) == [False, True]
    db_session.expire_all()
    assert db_session.get(Relocation, relocation.id).status == RequestStatus.approved
    installation = db_session.get(Installation, installation.id)
    assert installation.location == "Bandung"
    assert installation.relocation_status is False
