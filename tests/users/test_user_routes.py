"""
User Route Tests

Account management through ``/users``.
"""

import pytest
from httpx import AsyncClient

from app.models.user_model import User


NURSE_PAYLOAD = {
    "email": "Nurse@Example.com",
    "password": "Nurse123!",
    "firstName": "Nora",
    "lastName": "Nightingale",
    "role": "nurse",
    "department": "Ward 3",
}


@pytest.mark.asyncio
@pytest.mark.integration
class TestUserRoutes:
    async def test_admin_creates_user(self, client: AsyncClient, admin_headers: dict, admin_user: User, envelope):
        response = await client.post("/users/create", json=NURSE_PAYLOAD, headers=admin_headers)

        assert response.status_code == 201
        body = response.json()
        envelope(body, 201)
        assert body["message"] == "User created successfully"
        data = body["data"]
        assert data["email"] == "nurse@example.com"
        assert data["role"] == "nurse"
        assert data["isActive"] is True
        assert data["createdBy"] == admin_user.id
        assert "password" not in data

    async def test_created_user_can_log_in(self, client: AsyncClient, admin_headers: dict):
        await client.post("/users/create", json=NURSE_PAYLOAD, headers=admin_headers)

        response = await client.post(
            "/auth/login", json={"email": "nurse@example.com", "password": "Nurse123!"}
        )
        assert response.status_code == 200

    async def test_duplicate_email_is_409(self, client: AsyncClient, admin_headers: dict):
        first = await client.post("/users/create", json=NURSE_PAYLOAD, headers=admin_headers)
        assert first.status_code == 201

        second = await client.post("/users/create", json=NURSE_PAYLOAD, headers=admin_headers)
        assert second.status_code == 409
        assert second.json()["message"] == "Email already exists"

    async def test_short_password_is_400(self, client: AsyncClient, admin_headers: dict):
        payload = {**NURSE_PAYLOAD, "password": "123"}
        response = await client.post("/users/create", json=payload, headers=admin_headers)
        assert response.status_code == 400

    async def test_list_users_is_paginated(
        self, client: AsyncClient, admin_headers: dict, doctor_user: User, envelope
    ):
        response = await client.post("/users/list?page=1&limit=1", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        envelope(body, 200)
        data = body["data"]
        assert data["total"] == 2
        assert data["limit"] == 1
        assert data["totalPages"] == 2
        assert len(data["items"]) == 1

    async def test_list_users_search(
        self, client: AsyncClient, admin_headers: dict, doctor_user: User
    ):
        response = await client.post("/users/list?search=hous", headers=admin_headers)

        items = response.json()["data"]["items"]
        assert [item["email"] for item in items] == ["doctor@example.com"]

    async def test_get_user(self, client: AsyncClient, doctor_headers: dict, doctor_user: User):
        response = await client.get(f"/users/{doctor_user.id}", headers=doctor_headers)

        assert response.status_code == 200
        assert response.json()["data"]["lastName"] == "House"

    async def test_get_unknown_user_is_404(self, client: AsyncClient, doctor_headers: dict):
        response = await client.get("/users/9999", headers=doctor_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "User not found"

    async def test_update_own_profile(
        self, client: AsyncClient, doctor_headers: dict, doctor_user: User
    ):
        response = await client.patch(
            f"/users/{doctor_user.id}",
            json={"department": "Diagnostics"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["department"] == "Diagnostics"
        assert data["firstName"] == "Gregory"

    async def test_non_admin_cannot_change_role(
        self, client: AsyncClient, doctor_headers: dict, doctor_user: User
    ):
        response = await client.patch(
            f"/users/{doctor_user.id}",
            json={"role": "admin"},
            headers=doctor_headers,
        )
        assert response.status_code == 403

    async def test_password_update_is_hashed(
        self, client: AsyncClient, doctor_headers: dict, doctor_user: User
    ):
        response = await client.patch(
            f"/users/{doctor_user.id}",
            json={"password": "NewPass123"},
            headers=doctor_headers,
        )
        assert response.status_code == 200

        login = await client.post(
            "/auth/login", json={"email": "doctor@example.com", "password": "NewPass123"}
        )
        assert login.status_code == 200

    async def test_delete_deactivates(
        self, client: AsyncClient, admin_headers: dict, doctor_user: User
    ):
        response = await client.delete(f"/users/{doctor_user.id}", headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User deactivated successfully"
        assert body["data"]["isActive"] is False

        # Still retrievable by id, but gone from the list
        fetched = await client.get(f"/users/{doctor_user.id}", headers=admin_headers)
        assert fetched.json()["data"]["isActive"] is False

        listed = await client.post("/users/list", headers=admin_headers)
        emails = [item["email"] for item in listed.json()["data"]["items"]]
        assert "doctor@example.com" not in emails
