"""
Encounter Route Tests

Encounter ids, appointment linking and cancellation.
"""

import uuid

import pytest
from httpx import AsyncClient

from app.core.identifiers import today_utc
from app.models.user_model import User


@pytest.fixture
def encounter_payload(patient: dict, doctor_user: User) -> dict:
    return {
        "patientId": patient["id"],
        "providerId": doctor_user.id,
        "encounterType": "consultation",
        "encounterDate": "2024-12-01",
        "chiefComplaint": "Headache for three days",
        "assessment": "Tension headache",
    }


@pytest.mark.asyncio
@pytest.mark.integration
class TestEncounterRoutes:
    async def test_create_encounter(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict, envelope
    ):
        response = await client.post("/encounters", json=encounter_payload, headers=doctor_headers)

        assert response.status_code == 201
        body = response.json()
        envelope(body, 201)
        data = body["data"]
        assert data["encounterId"] == f"ENC{today_utc():%Y%m%d}0001"
        assert data["status"] == "active"
        assert data["encounterDate"].startswith("2024-12-01")
        assert data["patient"]["firstName"] == "Jane"
        assert data["appointmentId"] is None

    async def test_encounter_ids_are_sequential(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict
    ):
        first = await client.post("/encounters", json=encounter_payload, headers=doctor_headers)
        second = await client.post("/encounters", json=encounter_payload, headers=doctor_headers)

        scope = f"ENC{today_utc():%Y%m%d}"
        assert first.json()["data"]["encounterId"] == f"{scope}0001"
        assert second.json()["data"]["encounterId"] == f"{scope}0002"

    async def test_create_links_appointment(
        self,
        client: AsyncClient,
        doctor_headers: dict,
        encounter_payload: dict,
        appointment_payload: dict,
    ):
        appointment = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        appointment_id = appointment.json()["data"]["id"]

        response = await client.post(
            "/encounters",
            json={**encounter_payload, "appointmentId": appointment_id},
            headers=doctor_headers,
        )
        assert response.status_code == 201
        encounter = response.json()["data"]
        assert encounter["appointmentId"] == appointment_id

        linked = await client.get(f"/appointments/{appointment_id}", headers=doctor_headers)
        data = linked.json()["data"]
        assert data["encounterId"] == encounter["id"]
        assert data["status"] == "completed"

    async def test_unknown_appointment_is_404(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict
    ):
        response = await client.post(
            "/encounters",
            json={**encounter_payload, "appointmentId": str(uuid.uuid4())},
            headers=doctor_headers,
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Appointment not found"

    async def test_unknown_provider_is_404(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict
    ):
        response = await client.post(
            "/encounters",
            json={**encounter_payload, "providerId": 9999},
            headers=doctor_headers,
        )
        assert response.status_code == 404

    async def test_list_and_update(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict
    ):
        created = await client.post("/encounters", json=encounter_payload, headers=doctor_headers)
        encounter_id = created.json()["data"]["id"]

        updated = await client.patch(
            f"/encounters/{encounter_id}",
            json={"plan": "Hydration, follow up in two weeks", "status": "completed"},
            headers=doctor_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["plan"] == "Hydration, follow up in two weeks"
        assert updated.json()["data"]["status"] == "completed"

        listed = await client.get("/encounters?search=headache", headers=doctor_headers)
        assert listed.json()["data"]["total"] == 1

    async def test_cancel_is_soft_and_idempotent(
        self, client: AsyncClient, doctor_headers: dict, encounter_payload: dict
    ):
        created = await client.post("/encounters", json=encounter_payload, headers=doctor_headers)
        encounter_id = created.json()["data"]["id"]

        first = await client.delete(f"/encounters/{encounter_id}", headers=doctor_headers)
        second = await client.delete(f"/encounters/{encounter_id}", headers=doctor_headers)

        for response in (first, second):
            assert response.status_code == 200
            assert response.json()["message"] == "Encounter cancelled successfully"
            data = response.json()["data"]
            assert data["status"] == "cancelled"
            assert data["chiefComplaint"] == "Headache for three days"
            assert data["assessment"] == "Tension headache"

        fetched = await client.get(f"/encounters/{encounter_id}", headers=doctor_headers)
        assert fetched.json()["data"]["status"] == "cancelled"
