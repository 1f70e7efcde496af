import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginatedResponse, PaginationParams, Paginator
from app.core.utils import LoggerMixin
from app.models.encounter_model import Encounter
from app.repositories.encounter_repo import EncounterRepository
from app.repositories.patient_repo import PatientRepository
from app.repositories.sequence_repo import SequenceExhaustedError
from app.repositories.user_repo import UserRepository
from app.schemas.encounter_schemas import (
    EncounterCreateSchema,
    EncounterResponseSchema,
    EncounterUpdateSchema,
)
from app.services.appointment_service import AppointmentService


class EncounterService(LoggerMixin):
    """Service layer for clinical encounters."""

    def __init__(self, db: AsyncSession, appointment_service: Optional[AppointmentService] = None):
        self.db = db
        self.repo = EncounterRepository(self.db)
        self.patient_repo = PatientRepository(self.db)
        self.user_repo = UserRepository(self.db)
        self.appointment_service = appointment_service or AppointmentService(self.db)

    async def create_encounter(self, encounter_data: EncounterCreateSchema) -> Encounter:
        """
        Record an encounter under the next ``ENC<YYYYMMDD><seq>`` id.

        If ``appointment_id`` is set, that appointment must exist; it is then
        linked to the new encounter and marked completed.

        Raises:
            HTTPException: 404 for an unknown patient, provider or appointment;
                409 when no unique id could be allocated
        """
        if not await self.patient_repo.get_by_id(encounter_data.patient_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
        if not await self.user_repo.get_by_id(encounter_data.provider_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
        if encounter_data.appointment_id is not None:
            await self.appointment_service.get_appointment(encounter_data.appointment_id)

        try:
            encounter_id = await self.repo.next_encounter_id()
            encounter = await self.repo.create(
                Encounter(encounter_id=encounter_id, **encounter_data.model_dump())
            )
        except (IntegrityError, SequenceExhaustedError) as e:
            self.log_error({"event": "encounter_id_allocation_failed", "error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Could not allocate a unique encounter id, please retry",
            )

        if encounter.appointment_id is not None:
            await self.appointment_service.link_encounter(encounter.appointment_id, encounter.id)
            self.log_info(
                {
                    "event": "appointment_linked_to_encounter",
                    "encounter_id": encounter.encounter_id,
                    "appointment_id": encounter.appointment_id,
                }
            )
        return encounter

    async def list_encounters(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        return await Paginator.paginate(
            self.db, self.repo.list_query(search), params, EncounterResponseSchema
        )

    async def get_encounter(self, encounter_id: uuid.UUID) -> Encounter:
        encounter = await self.repo.get_by_id(encounter_id)
        if not encounter:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Encounter not found",
            )
        return encounter

    async def update_encounter(
        self, encounter_id: uuid.UUID, update_data: EncounterUpdateSchema
    ) -> Encounter:
        encounter = await self.get_encounter(encounter_id)
        return await self.repo.update(encounter, update_data.model_dump(exclude_unset=True))

    async def cancel_encounter(self, encounter_id: uuid.UUID) -> Encounter:
        """Soft delete: status becomes cancelled, everything else is kept. Idempotent."""
        encounter = await self.get_encounter(encounter_id)
        return await self.repo.remove(encounter)
