"""
Pytest configuration and shared fixtures for backend tests.
"""
import os

# Settings are read once at import time; point everything at local throwaway backends first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-0123")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import date, datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.core.database import Base, build_engine
from app.core.deps import get_store
from app.core.security import create_access_token
from app.main import app
from app.models import Customer, Goal, Lead, PersonalBest, Task
from app.services.store import SqlRowStore

OWNER_ID = "6b1f3c2e-0000-4000-8000-000000000001"
OTHER_OWNER_ID = "6b1f3c2e-0000-4000-8000-000000000002"


@pytest.fixture
def session_factory(tmp_path):
    # File-backed so concurrent threadpool reads each get their own connection.
    engine = build_engine(f"sqlite:///{tmp_path / 'crm.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session_factory):
    return SqlRowStore(session_factory)


@pytest.fixture
def make_lead(db):
    def _make(created_at: datetime, owner_id: str = OWNER_ID, **fields) -> Lead:
        lead = Lead(user_id=owner_id, name=fields.pop("name", "Lead"), created_at=created_at, **fields)
        db.add(lead)
        db.commit()
        return lead

    return _make


@pytest.fixture
def make_customer(db):
    def _make(created_at: datetime, owner_id: str = OWNER_ID, **fields) -> Customer:
        customer = Customer(user_id=owner_id, name=fields.pop("name", "Customer"), created_at=created_at, **fields)
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture
def make_task(db):
    def _make(due_date: date | None, owner_id: str = OWNER_ID, **fields) -> Task:
        task = Task(user_id=owner_id, name=fields.pop("name", "Task"), due_date=due_date, **fields)
        db.add(task)
        db.commit()
        return task

    return _make


@pytest.fixture
def make_goal(db):
    def _make(title: str, owner_id: str = OWNER_ID, **fields) -> Goal:
        goal = Goal(user_id=owner_id, title=title, **fields)
        db.add(goal)
        db.commit()
        return goal

    return _make


@pytest.fixture
def make_personal_best(db):
    def _make(metric_type: str, value: float, owner_id: str = OWNER_ID) -> PersonalBest:
        best = PersonalBest(user_id=owner_id, metric_type=metric_type, value=value, achieved_at=datetime(2024, 1, 31))
        db.add(best)
        db.commit()
        return best

    return _make


@pytest.fixture
def client(session_factory):
    """TestClient for the FastAPI app with the row store bound to the test database."""
    app.dependency_overrides[get_store] = lambda: SqlRowStore(session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(OWNER_ID)}"}
