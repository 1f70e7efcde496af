"""
Sequence Repository Tests

The per-scope counter behind appointment and encounter ids.
"""

from datetime import date

import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identifiers import APPOINTMENT_ID, ENCOUNTER_ID
from app.models.appointment_model import Appointment
from app.models.encounter_model import Encounter
from app.models.sequence_model import IdentifierSequence
from app.repositories.sequence_repo import SequenceExhaustedError, SequenceRepository
from app.schemas.appointment_schemas import AppointmentType


DAY = date(2024, 12, 1)


def _appointment(appointment_id: str) -> Appointment:
    return Appointment(
        appointment_id=appointment_id,
        appointment_date=DAY,
        appointment_time="10:00",
        appointment_type=AppointmentType.CHECKUP,
        reason="Seed",
    )


@pytest.mark.asyncio
@pytest.mark.unit
class TestSequenceRepository:
    async def test_first_value_of_a_scope_is_one(self, db_session: AsyncSession):
        repo = SequenceRepository(db_session)

        identifier = await repo.next_daily_identifier(
            APPOINTMENT_ID, Appointment.appointment_id, day=DAY
        )
        assert identifier == "APT20241201001"

    async def test_values_are_distinct_and_increasing(self, db_session: AsyncSession):
        repo = SequenceRepository(db_session)

        values = [
            await repo.next_daily_identifier(APPOINTMENT_ID, Appointment.appointment_id, day=DAY)
            for _ in range(5)
        ]
        assert values == sorted(values)
        assert len(set(values)) == 5
        assert values[-1] == "APT20241201005"

    async def test_scopes_are_independent(self, db_session: AsyncSession):
        repo = SequenceRepository(db_session)

        await repo.next_daily_identifier(APPOINTMENT_ID, Appointment.appointment_id, day=DAY)
        other_day = await repo.next_daily_identifier(
            APPOINTMENT_ID, Appointment.appointment_id, day=date(2024, 12, 2)
        )
        encounter = await repo.next_daily_identifier(
            ENCOUNTER_ID, Encounter.encounter_id, day=DAY
        )

        assert other_day == "APT20241202001"
        assert encounter == "ENC202412010001"

    async def test_seed_uses_numeric_maximum_across_widths(self, db_session: AsyncSession):
        db_session.add_all([_appointment("APT20241201999"), _appointment("APT202412011000")])
        await db_session.commit()

        identifier = await SequenceRepository(db_session).next_daily_identifier(
            APPOINTMENT_ID, Appointment.appointment_id, day=DAY
        )
        assert identifier == "APT202412011001"

    async def test_lost_insert_race_falls_back_to_increment(
        self, db_session: AsyncSession, monkeypatch
    ):
        # Another writer already created the counter row.
        await db_session.execute(
            insert(IdentifierSequence).values(scope="APT20241201", last_value=4)
        )
        await db_session.commit()

        repo = SequenceRepository(db_session)
        real_increment = SequenceRepository._increment
        calls = []

        async def first_update_misses(self, scope):
            calls.append(scope)
            if len(calls) == 1:
                return None
            return await real_increment(self, scope)

        monkeypatch.setattr(SequenceRepository, "_increment", first_update_misses)

        value = await repo.next_value("APT20241201", seed=self._zero_seed)

        assert value == 5
        assert len(calls) == 2

    async def test_exhausted_attempts_raise(self, db_session: AsyncSession, monkeypatch):
        await db_session.execute(
            insert(IdentifierSequence).values(scope="APT20241201", last_value=1)
        )
        await db_session.commit()

        async def always_misses(self, scope):
            return None

        monkeypatch.setattr(SequenceRepository, "_increment", always_misses)

        with pytest.raises(SequenceExhaustedError):
            await SequenceRepository(db_session).next_value("APT20241201", seed=self._zero_seed)

    @staticmethod
    async def _zero_seed() -> int:
        return 0
