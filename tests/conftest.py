from __future__ import annotations

import os

# Configure before the application modules read the environment
os.environ["DATABASE_URL"] = "sqlite:///./academy_ops_test.db"
os.environ["STAFF_API_TOKENS"] = "staff-token:staff1,director-token:director"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)
os.environ.pop("CALENDAR_WEBHOOK_URL", None)

from datetime import date
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from academy_ops.database import Base, build_engine, get_db
from academy_ops.main import app
from academy_ops.models import Applicant
from academy_ops.models_slots import ConsultationSlot


@pytest.fixture
def engine(tmp_path: Path):
    engine = build_engine(f"sqlite:///{tmp_path / 'academy_ops.db'}")
    Base.metadata.create_all(bind=engine)
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
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would create tables on the default engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_applicant(db):
    counter = {"n": 0}

    def _make(**overrides) -> Applicant:
        counter["n"] += 1
        fields = {
            "student_name": f"Student {counter['n']}",
            "parent_name": f"Parent {counter['n']}",
            "phone": f"0101234{counter['n']:04d}",
            "campus": "International",
            "status": "waiting",
        }
        fields.update(overrides)
        applicant = Applicant(**fields)
        db.add(applicant)
        db.commit()
        db.refresh(applicant)
        return applicant

    return _make


@pytest.fixture
def make_slot(db):
    def _make(
        slot_date: date = date(2025, 3, 10),
        time: str = "10:00",
        capacity: int = 1,
        occupied: int = 0,
        is_open: bool = True,
    ) -> ConsultationSlot:
        slot = ConsultationSlot(
            date=slot_date, time=time, capacity=capacity, occupied=occupied, is_open=is_open
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make
