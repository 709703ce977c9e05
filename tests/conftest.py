from datetime import datetime
from itertools import count

import pytest
from fastapi.testclient import TestClient

from booking.core.config import Settings
from booking.core.database import Database, get_redis
from booking.core.security import UserRole, create_user_token
from booking.main import create_app
from booking.models.appointment import Appointment
from booking.models.user import User

from .helpers import InMemoryRedis


_emails = count(1)


@pytest.fixture
def settings():
    return Settings(TESTING=True, TEST_DATABASE_URL="sqlite://", RATE_LIMIT_REQUESTS=1000)


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest.fixture
def app(settings, redis_client):
    app = create_app(settings)
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.state.database.create_all()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture
def database(app) -> Database:
    return app.state.database


@pytest.fixture
def make_user(database):
    """Insert a user directly and return it detached from its session."""
    def _make_user(role: UserRole, name: str = None) -> User:
        n = next(_emails)
        session = database.session()
        try:
            user = User(
                name=name or f"{role.value.title()} {n}",
                email=f"{role.value}{n}@example.com",
                password_hash="unused",
                role=role,
                is_active=True
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user
        finally:
            session.close()

    return _make_user


@pytest.fixture
def make_appointment(database):
    def _make_appointment(patient: User, doctor: User, date_time: datetime, **fields) -> Appointment:
        session = database.session()
        try:
            appointment = Appointment(
                patient_id=patient.id,
                doctor_id=doctor.id,
                date_time=date_time,
                duration=fields.get("duration", 30),
                reason=fields.get("reason", "checkup"),
            )
            session.add(appointment)
            session.commit()
            session.refresh(appointment)
            session.expunge(appointment)
            return appointment
        finally:
            session.close()

    return _make_appointment


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        token = create_user_token(user.id, user.email, user.role)
        return {"Authorization": f"Bearer {token.access_token}"}

    return _auth_headers


@pytest.fixture
def db(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()
