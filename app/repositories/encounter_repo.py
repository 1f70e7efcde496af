from typing import Optional

from sqlalchemy import Select
from sqlalchemy.future import select

from app.core.identifiers import ENCOUNTER_ID
from app.core.pagination import search_filter
from app.models.encounter_model import Encounter
from app.models.patient_model import Patient
from app.repositories.base_repo import BaseRepository
from app.repositories.sequence_repo import SequenceRepository


class EncounterRepository(BaseRepository[Encounter]):
    """Repository layer for encounter data access."""

    model = Encounter

    async def next_encounter_id(self) -> str:
        return await SequenceRepository(self.db).next_daily_identifier(
            ENCOUNTER_ID, Encounter.encounter_id
        )

    def list_query(self, search: Optional[str] = None) -> Select:
        query = select(Encounter).outerjoin(Encounter.patient)
        criteria = search_filter(
            search,
            Patient.first_name,
            Patient.last_name,
            Encounter.encounter_id,
            Encounter.chief_complaint,
        )
        if criteria is not None:
            query = query.where(criteria)
        return query.order_by(Encounter.encounter_date.desc(), Encounter.encounter_id.desc())
