"""
Pytest configuration for all tests.

Each test gets a fresh in-memory SQLite database shared across threads
(StaticPool), so the FastAPI TestClient and the direct session see the
same data.
"""

from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from intern_rotations.database import get_db, init_db, make_engine
from intern_rotations.interns import create_intern
from intern_rotations.main import app
from intern_rotations.units import create_unit


@pytest.fixture
def engine():
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
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
def four_units(db):
    """Catalog of four 14-day units, positions 1..4."""
    units = [create_unit(db, f"Unit {n}", 14, workload="Medium") for n in range(1, 5)]
    db.commit()
    return units


@pytest.fixture
def make_intern(db):
    def _make(name="Ada", gender="Female", start=date(2026, 1, 1), today=date(2026, 1, 1), **kwargs):
        intern = create_intern(db, name, gender, start, today=today, **kwargs)
        db.commit()
        return intern
    return _make
