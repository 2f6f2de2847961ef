import os

# Settings are read at import time; give them a database before anything imports them.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sensorfleet.db.base import Base
from sensorfleet.db.session import get_db
from sensorfleet.main import app
from sensorfleet.services import reading_store, sensor_registry


def _sqlite_engine():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.close()

    return engine


@pytest.fixture
def bare_engine():
    """An engine whose database has no tables at all."""
    engine = _sqlite_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def engine():
    """In-memory SQLite database with the sensors schema created."""
    engine = _sqlite_engine()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient whose requests use the in-memory database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def add_sensor(db):
    """Returns a helper that registers a sensor with a fixed face."""
    def _add(code: int, face: str = "north", installed_at: int = 0):
        sensor_registry.bulk_insert(
            db, [{"sensor_code": code, "face": face, "installed_at": installed_at, "status": "active"}]
        )
        return code

    return _add


@pytest.fixture
def add_readings(db):
    """Returns a helper that writes readings for one sensor code."""
    def _add(code: int, values, timestamp: int = 1_700_000_000):
        reading_store.bulk_insert_readings(
            db,
            [{"sensor_id": code, "timestamp": timestamp, "temperature_value": v} for v in values],
        )

    return _add
