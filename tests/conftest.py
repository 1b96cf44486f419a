import os
import sqlite3
import uuid

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

load_dotenv(os.path.join(os.getcwd(), ".env"))

# Register UUID adapter for SQLite - store as string
sqlite3.register_adapter(uuid.UUID, lambda u: str(u))


# Monkey-patch SQLAlchemy's UUID type for SQLite compatibility
# This must happen before any models are imported
from sqlalchemy.sql import sqltypes  # noqa: E402

_original_uuid_bind_processor = sqltypes.Uuid.bind_processor
_original_uuid_result_processor = sqltypes.Uuid.result_processor


def _sqlite_uuid_bind_processor(self, dialect):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return str(value)
                return str(uuid.UUID(value)) if value else None
            return None
        return process
    return _original_uuid_bind_processor(self, dialect)


def _sqlite_uuid_result_processor(self, dialect, coltype):
    if dialect.name == "sqlite":
        def process(value):
            if value is not None:
                if isinstance(value, uuid.UUID):
                    return value
                return uuid.UUID(value) if value else None
            return None
        return process
    return _original_uuid_result_processor(self, dialect, coltype)


sqltypes.Uuid.bind_processor = _sqlite_uuid_bind_processor
sqltypes.Uuid.result_processor = _sqlite_uuid_result_processor

import app.models  # noqa: F401,E402
from app.db import Base  # noqa: E402
from app.models.inventory import (  # noqa: E402
    InventoryUnit,
    InventoryUnitStatus,
    LocationType,
    Material,
    StockArea,
)
from app.models.person import Person  # noqa: E402
from app.schemas.material_request import (  # noqa: E402
    MaterialRequestCreate,
    MaterialRequestDecision,
    MaterialRequestItemCreate,
    PRNumberRef,
)
from app.services.context import RequestContext  # noqa: E402
from app.services.material_requests import material_requests  # noqa: E402


@pytest.fixture()
def engine():
    # Services roll back their own session on failure, so every test gets a
    # private in-memory database instead of an outer rolled-back transaction.
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
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex}@example.com"


def _make_person(db, first_name: str, last_name: str) -> Person:
    person = Person(first_name=first_name, last_name=last_name, email=_unique_email())
    db.add(person)
    db.commit()
    db.refresh(person)
    return person


@pytest.fixture()
def person(db_session):
    """Field technician raising material requests."""
    return _make_person(db_session, "Test", "User")


@pytest.fixture()
def approver(db_session):
    return _make_person(db_session, "Store", "Manager")


@pytest.fixture()
def ctx(person):
    return RequestContext(actor_id=person.id, ip_address="127.0.0.1", user_agent="pytest")


@pytest.fixture()
def approver_ctx(approver):
    return RequestContext(actor_id=approver.id, ip_address="127.0.0.1", user_agent="pytest")


@pytest.fixture()
def material(db_session):
    material = Material(name="ONT Router", product_code="ONT-001", uom="PIECE(S)")
    db_session.add(material)
    db_session.commit()
    db_session.refresh(material)
    return material


@pytest.fixture()
def other_material(db_session):
    material = Material(name="Fiber Splice Closure", product_code="FIB-SC-001", uom="UNIT")
    db_session.add(material)
    db_session.commit()
    db_session.refresh(material)
    return material


@pytest.fixture()
def stock_area(db_session):
    area = StockArea(name="Main Warehouse", location_code="WH-01")
    db_session.add(area)
    db_session.commit()
    db_session.refresh(area)
    return area


@pytest.fixture()
def make_units(db_session, stock_area):
    """Factory creating AVAILABLE warehouse units of a material."""

    def _make(material, count: int, **overrides) -> list[InventoryUnit]:
        units = []
        for _ in range(count):
            data = {
                "material_id": material.id,
                "serial_number": f"SN-{uuid.uuid4().hex[:12]}",
                "location_type": LocationType.warehouse,
                "stock_area_id": stock_area.id,
                "status": InventoryUnitStatus.available,
            }
            data.update(overrides)
            unit = InventoryUnit(**data)
            db_session.add(unit)
            units.append(unit)
        db_session.commit()
        for unit in units:
            db_session.refresh(unit)
        return units

    return _make


@pytest.fixture()
def make_request(db_session, ctx):
    """Factory creating a material request through the service."""

    def _make(*lines, pr_number: str = "PR-1001", context: RequestContext | None = None):
        payload = MaterialRequestCreate(
            pr_numbers=[PRNumberRef(pr_number=pr_number)],
            items=[
                MaterialRequestItemCreate(material_id=material.id, requested_quantity=quantity)
                for material, quantity in lines
            ],
        )
        return material_requests.create(db_session, context or ctx, payload)

    return _make


@pytest.fixture()
def approved_request(db_session, make_request, material, approver_ctx):
    """Approved request for three units of ``material``."""
    mr = make_request((material, 3))
    return material_requests.approve_or_reject(
        db_session, approver_ctx, mr.id, MaterialRequestDecision(status="APPROVED")
    )
