from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.config import settings
from app.core.identifiers import generate_patient_id
from app.core.pagination import PaginatedResponse, PaginationParams, Paginator
from app.core.utils import LoggerMixin
from app.models.patient_model import Patient
from app.repositories.patient_repo import PatientRepository
from app.schemas.patient_schemas import (
    PatientCreateSchema,
    PatientResponseSchema,
    PatientUpdateSchema,
)


class PatientService(LoggerMixin):
    """Service layer for patient business logic."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PatientRepository(self.db)

    async def create_patient(self, patient_data: PatientCreateSchema) -> Patient:
        """
        Register a patient under a freshly generated ``P#########`` id.

        The id is not checked before insert; a unique-constraint collision
        triggers a new id, up to ``ID_GENERATION_MAX_ATTEMPTS`` times.

        Raises:
            HTTPException: 409 when every attempt collided
        """
        patient_dict = patient_data.model_dump()

        for attempt in range(1, settings.ID_GENERATION_MAX_ATTEMPTS + 1):
            patient_id = generate_patient_id()
            patient = Patient(patient_id=patient_id, **patient_dict)
            try:
                await self.repo.add_in_savepoint(patient)
            except IntegrityError:
                self.log_warning(
                    {
                        "event": "patient_id_collision",
                        "patient_id": patient_id,
                        "attempt": attempt,
                    }
                )
                continue
            return await self.repo.save(patient)

        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Could not allocate a unique patient id, please retry",
        )

    async def get_patient(self, patient_id: int) -> Patient:
        patient = await self.repo.get_by_id(patient_id)
        if not patient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )
        return patient

    async def list_patients(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        """Active patients, newest first; search matches names and patient id."""
        return await Paginator.paginate(
            self.db, self.repo.list_query(search), params, PatientResponseSchema
        )

    async def update_patient(
        self, patient_id: int, update_data: PatientUpdateSchema
    ) -> Patient:
        patient = await self.get_patient(patient_id)
        return await self.repo.update(patient, update_data.model_dump(exclude_unset=True))

    async def delete_patient(self, patient_id: int) -> Patient:
        """Soft delete: the patient is deactivated and stays retrievable by id."""
        patient = await self.get_patient(patient_id)
        return await self.repo.remove(patient)
