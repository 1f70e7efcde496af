"""
Appointment Route Tests

Booking, per-day appointment ids, check-in and hard deletion.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identifiers import today_utc
from app.models.appointment_model import Appointment
from app.models.sequence_model import IdentifierSequence
from app.repositories.sequence_repo import SequenceRepository
from app.schemas.appointment_schemas import AppointmentType


def today_scope() -> str:
    return f"APT{today_utc():%Y%m%d}"


@pytest.mark.asyncio
@pytest.mark.integration
class TestAppointmentRoutes:
    async def test_create_appointment(
        self,
        client: AsyncClient,
        doctor_headers: dict,
        appointment_payload: dict,
        patient: dict,
        envelope,
    ):
        response = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )

        assert response.status_code == 201
        body = response.json()
        envelope(body, 201)
        data = body["data"]
        assert data["appointmentId"] == f"{today_scope()}001"
        assert data["status"] == "scheduled"
        assert data["duration"] == 30
        assert data["appointmentDate"] == "2024-12-01"
        assert data["patient"]["patientId"] == patient["patientId"]
        assert data["provider"]["lastName"] == "House"

    async def test_ids_are_sequential_within_a_day(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        ids = []
        for _ in range(3):
            response = await client.post(
                "/appointments", json=appointment_payload, headers=doctor_headers
            )
            ids.append(response.json()["data"]["appointmentId"])

        scope = today_scope()
        assert ids == [f"{scope}001", f"{scope}002", f"{scope}003"]

    async def test_counter_is_seeded_from_existing_ids(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        doctor_headers: dict,
        appointment_payload: dict,
    ):
        db_session.add(
            Appointment(
                appointment_id=f"{today_scope()}007",
                appointment_date=today_utc(),
                appointment_time="08:00",
                appointment_type=AppointmentType.ROUTINE,
                reason="Imported",
            )
        )
        await db_session.commit()

        response = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        assert response.json()["data"]["appointmentId"] == f"{today_scope()}008"

    async def test_deleted_ids_are_not_reused(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        await client.post("/appointments", json=appointment_payload, headers=doctor_headers)
        second = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        await client.delete(
            f"/appointments/{second.json()['data']['id']}", headers=doctor_headers
        )

        third = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        assert third.json()["data"]["appointmentId"] == f"{today_scope()}003"

    async def test_lost_counter_race_still_answers_201(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        doctor_headers: dict,
        appointment_payload: dict,
        monkeypatch,
    ):
        await db_session.execute(
            insert(IdentifierSequence).values(scope=today_scope(), last_value=3)
        )
        await db_session.commit()

        real_increment = SequenceRepository._increment
        calls = []

        async def first_update_misses(self, scope):
            calls.append(scope)
            if len(calls) == 1:
                return None
            return await real_increment(self, scope)

        monkeypatch.setattr(SequenceRepository, "_increment", first_update_misses)

        response = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )

        assert response.status_code == 201, response.text
        data = response.json()["data"]
        assert data["appointmentId"] == f"{today_scope()}004"
        assert data["provider"]["lastName"] == "House"
        assert len(calls) == 2

    async def test_unknown_patient_is_404(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        payload = {**appointment_payload, "patientId": 9999}
        response = await client.post("/appointments", json=payload, headers=doctor_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Patient not found"

    async def test_invalid_time_is_400(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        payload = {**appointment_payload, "appointmentTime": "25:99"}
        response = await client.post("/appointments", json=payload, headers=doctor_headers)
        assert response.status_code == 400

    async def test_list_and_search(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        await client.post("/appointments", json=appointment_payload, headers=doctor_headers)
        await client.post(
            "/appointments",
            json={**appointment_payload, "appointmentDate": "2024-12-05", "reason": "Rash"},
            headers=doctor_headers,
        )

        response = await client.get("/appointments", headers=doctor_headers)
        data = response.json()["data"]
        assert data["total"] == 2
        # Latest appointment date first
        assert [item["appointmentDate"] for item in data["items"]] == ["2024-12-05", "2024-12-01"]

        by_patient = await client.get("/appointments?search=jane", headers=doctor_headers)
        assert by_patient.json()["data"]["total"] == 2

        by_reason = await client.get("/appointments?search=rash", headers=doctor_headers)
        assert by_reason.json()["data"]["total"] == 1

    async def test_get_unknown_appointment_is_404(self, client: AsyncClient, doctor_headers: dict):
        response = await client.get(f"/appointments/{uuid.uuid4()}", headers=doctor_headers)
        assert response.status_code == 404

    async def test_update_appointment(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        created = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        appointment_id = created.json()["data"]["id"]

        response = await client.patch(
            f"/appointments/{appointment_id}",
            json={"status": "confirmed", "notes": "Bring previous x-rays"},
            headers=doctor_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "confirmed"
        assert data["notes"] == "Bring previous x-rays"
        assert data["appointmentId"] == created.json()["data"]["appointmentId"]

    async def test_check_in_is_idempotent(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict
    ):
        created = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        appointment_id = created.json()["data"]["id"]

        first = await client.patch(
            f"/appointments/{appointment_id}/check-in", headers=doctor_headers
        )
        second = await client.patch(
            f"/appointments/{appointment_id}/check-in", headers=doctor_headers
        )

        assert first.status_code == 200
        assert first.json()["message"] == "Patient checked in successfully"
        assert first.json()["data"]["status"] == "checked-in"
        assert second.status_code == 200
        assert second.json()["data"]["status"] == "checked-in"

    async def test_delete_is_permanent(
        self, client: AsyncClient, doctor_headers: dict, appointment_payload: dict, envelope
    ):
        created = await client.post(
            "/appointments", json=appointment_payload, headers=doctor_headers
        )
        appointment_id = created.json()["data"]["id"]

        response = await client.delete(f"/appointments/{appointment_id}", headers=doctor_headers)

        assert response.status_code == 200
        body = response.json()
        envelope(body, 200, has_data=False)
        assert body["message"] == "Appointment deleted successfully"

        fetched = await client.get(f"/appointments/{appointment_id}", headers=doctor_headers)
        assert fetched.status_code == 404
