"""
Shared fixtures: in-memory database, authenticated clients and sample data
"""

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dentallab.database import Base, get_db, enable_sqlite_foreign_keys
from dentallab.auth.auth_handler import auth_handler
from dentallab.constants import ROLE_ADMIN, ROLE_CLIENT, ROLE_OPERATOR
from dentallab.models.doctor import Doctor
from main import app

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


def auth_headers(role: str, user_id: int = 900, username: str = None) -> dict:
    token = auth_handler.create_access_token(data={
        "sub": str(user_id),
        "username": username or role,
        "role": role,
        "email": f"{role}@example.com",
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    return auth_headers(ROLE_ADMIN)


@pytest.fixture
def client_headers():
    return auth_headers(ROLE_CLIENT, user_id=901)


@pytest.fixture
def operator_headers():
    return auth_headers(ROLE_OPERATOR, user_id=902)


@pytest.fixture
def doctor(db_session):
    doctor = Doctor(title="Dra.", first_name="Ana", last_name="Paredes", phone="0991234567")
    db_session.add(doctor)
    db_session.commit()
    db_session.refresh(doctor)
    return doctor


@pytest.fixture
def create_order(client, admin_headers, doctor):
    """Factory posting an order through the API and returning its JSON"""
    def _create(**overrides):
        payload = {
            "doctor_id": doctor.id,
            "patient_name": "Luis Vera",
            "job_items": [
                {"job_type": "ACRÍLICO - Rebase Acrílico", "unit_cost": 35, "units": 2},
            ],
        }
        payload.update(overrides)
        response = client.post("/api/v1/orders/", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create


@pytest.fixture
def session_factory():
    return TestingSessionLocal
