"""
Shared test fixtures and configuration for pytest.

Each test gets its own in-memory SQLite database. The single connection is
shared through ``StaticPool`` so every session sees the same tables.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.api.dependencies import get_db  # noqa: E402
from app.core.security import get_password_hash  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user_model import User  # noqa: E402
from app.schemas.user_schemas import UserRole  # noqa: E402


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_PASSWORD = "Admin123!"
DOCTOR_PASSWORD = "Doctor123!"


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """A session on a freshly created schema."""
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def override_get_db(db_session: AsyncSession):
    """Override the get_db dependency for testing."""

    async def _override_get_db():
        yield db_session

    return _override_get_db


@pytest.fixture
async def client(override_get_db) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create_user(
    db_session: AsyncSession,
    email: str,
    password: str,
    role: UserRole,
    first_name: str,
    last_name: str,
) -> User:
    user = User(
        email=email,
        password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(
        db_session, "admin@example.com", ADMIN_PASSWORD, UserRole.ADMIN, "Ada", "Admin"
    )


@pytest.fixture
async def doctor_user(db_session: AsyncSession) -> User:
    return await _create_user(
        db_session,
        "doctor@example.com",
        DOCTOR_PASSWORD,
        UserRole.DOCTOR,
        "Gregory",
        "House",
    )


async def _login(client: AsyncClient, email: str, password: str) -> dict:
    response = await client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(client: AsyncClient, admin_user: User) -> dict:
    return await _login(client, admin_user.email, ADMIN_PASSWORD)


@pytest.fixture
async def doctor_headers(client: AsyncClient, doctor_user: User) -> dict:
    return await _login(client, doctor_user.email, DOCTOR_PASSWORD)


@pytest.fixture
def patient_payload() -> dict:
    return {
        "firstName": "Jane",
        "lastName": "Doe",
        "dateOfBirth": "1990-01-01",
        "gender": "female",
        "phone": "555-0100",
        "email": "jane@example.com",
        "address": "1 Main St",
    }


@pytest.fixture
async def patient(client: AsyncClient, doctor_headers: dict, patient_payload: dict) -> dict:
    """A patient created through the API; the envelope ``data``."""
    response = await client.post("/patients", json=patient_payload, headers=doctor_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.fixture
def appointment_payload(patient: dict, doctor_user: User) -> dict:
    return {
        "patientId": patient["id"],
        "providerId": doctor_user.id,
        "appointmentDate": "2024-12-01",
        "appointmentTime": "09:30",
        "appointmentType": "consultation",
        "reason": "Persistent cough",
    }


@pytest.fixture
async def medication(client: AsyncClient, doctor_headers: dict) -> dict:
    """A catalogue medication created through the API."""
    response = await client.post(
        "/medications/master",
        json={
            "genericName": "Amoxicillin",
            "brandName": "Amoxil",
            "dosageForm": "capsule",
            "strength": "500mg",
            "classification": "antibiotic",
        },
        headers=doctor_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def assert_envelope(body: dict, status_code: int, has_data: bool = True):
    """Assert the response body is a well-formed envelope."""
    assert body["success"] is (status_code < 400)
    assert body["statusCode"] == status_code
    assert isinstance(body["message"], str) and body["message"]
    assert body["timestamp"].endswith("Z")
    assert ("data" in body) is has_data


@pytest.fixture
def envelope():
    """Envelope assertion helper as a fixture, so test modules need no imports."""
    return assert_envelope
