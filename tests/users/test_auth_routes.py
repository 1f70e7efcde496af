"""
Authentication Tests

Login, bearer token resolution and role gating.
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.tokens import TokenManager
from app.models.user_model import User


@pytest.mark.asyncio
@pytest.mark.auth
class TestLogin:
    async def test_login_success(self, client: AsyncClient, doctor_user: User, envelope):
        response = await client.post(
            "/auth/login",
            json={"email": "doctor@example.com", "password": "Doctor123!"},
        )

        assert response.status_code == 200
        body = response.json()
        envelope(body, 200)
        assert body["message"] == "Login successful"
        assert body["data"]["access_token"]

    async def test_login_email_is_case_insensitive(self, client: AsyncClient, doctor_user: User):
        response = await client.post(
            "/auth/login",
            json={"email": "Doctor@Example.com", "password": "Doctor123!"},
        )
        assert response.status_code == 200

    async def test_login_wrong_password(self, client: AsyncClient, doctor_user: User, envelope):
        response = await client.post(
            "/auth/login",
            json={"email": "doctor@example.com", "password": "wrong-password"},
        )

        assert response.status_code == 401
        body = response.json()
        envelope(body, 401, has_data=False)
        assert body["message"] == "Invalid credentials"

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == 401

    async def test_login_inactive_user(
        self, client: AsyncClient, doctor_user: User, db_session: AsyncSession
    ):
        doctor_user.is_active = False
        await db_session.commit()

        response = await client.post(
            "/auth/login",
            json={"email": "doctor@example.com", "password": "Doctor123!"},
        )
        assert response.status_code == 401

    async def test_login_validation_error_is_400(self, client: AsyncClient, envelope):
        response = await client.post("/auth/login", json={"email": "not-an-email"})

        assert response.status_code == 400
        body = response.json()
        envelope(body, 400, has_data=False)
        assert "email" in body["message"]
        assert "password" in body["message"]


@pytest.mark.asyncio
@pytest.mark.auth
class TestBearerToken:
    async def test_me_returns_current_user(self, client: AsyncClient, doctor_headers: dict):
        response = await client.get("/auth/me", headers=doctor_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["email"] == "doctor@example.com"
        assert data["role"] == "doctor"
        assert "password" not in data

    async def test_missing_token_is_401(self, client: AsyncClient, envelope):
        response = await client.get("/patients/list")

        assert response.status_code == 401
        body = response.json()
        envelope(body, 401, has_data=False)
        assert body["message"] == "Not authenticated"

    async def test_garbage_token_is_401(self, client: AsyncClient):
        response = await client.get(
            "/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid authentication credentials"

    async def test_expired_token_is_401(self, client: AsyncClient, doctor_user: User):
        token = TokenManager.create_access_token(
            {"sub": doctor_user.id}, expires_delta=timedelta(minutes=-1)
        )
        response = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_token_of_unknown_user_is_401(self, client: AsyncClient, db_session: AsyncSession):
        token = TokenManager.create_access_token({"sub": 9999})
        response = await client.get(
            "/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "User not found"

    async def test_deactivated_user_token_is_rejected(
        self,
        client: AsyncClient,
        doctor_user: User,
        doctor_headers: dict,
        db_session: AsyncSession,
    ):
        doctor_user.is_active = False
        await db_session.commit()

        response = await client.get("/auth/me", headers=doctor_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "Account is inactive"


@pytest.mark.asyncio
@pytest.mark.auth
class TestRoleGating:
    async def test_doctor_cannot_create_users(self, client: AsyncClient, doctor_headers: dict):
        response = await client.post(
            "/users/create",
            json={
                "email": "nurse@example.com",
                "password": "Nurse123!",
                "firstName": "Nora",
                "lastName": "Nurse",
                "role": "nurse",
            },
            headers=doctor_headers,
        )

        assert response.status_code == 403
        assert "admin" in response.json()["message"]

    async def test_doctor_cannot_list_users(self, client: AsyncClient, doctor_headers: dict):
        response = await client.post("/users/list", headers=doctor_headers)
        assert response.status_code == 403

    async def test_doctor_cannot_delete_users(
        self, client: AsyncClient, doctor_headers: dict, admin_user: User
    ):
        response = await client.delete(f"/users/{admin_user.id}", headers=doctor_headers)
        assert response.status_code == 403
