import uuid
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginatedResponse, PaginationParams, Paginator
from app.core.utils import LoggerMixin, utcnow
from app.models.medication_model import MedicationMaster, PatientMedication
from app.repositories.medication_repo import (
    MedicationMasterRepository,
    PatientMedicationRepository,
)
from app.repositories.patient_repo import PatientRepository
from app.repositories.user_repo import UserRepository
from app.schemas.medication_schemas import (
    MedicationMasterCreateSchema,
    MedicationMasterResponseSchema,
    PatientMedicationCreateSchema,
    PatientMedicationStatus,
    PatientMedicationUpdateSchema,
)


class MedicationService(LoggerMixin):
    """Medication catalogue and patient prescriptions."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.master_repo = MedicationMasterRepository(self.db)
        self.repo = PatientMedicationRepository(self.db)
        self.patient_repo = PatientRepository(self.db)
        self.user_repo = UserRepository(self.db)

    # ============= Medication Master =============
    async def create_medication_master(
        self, medication_data: MedicationMasterCreateSchema
    ) -> MedicationMaster:
        return await self.master_repo.create(MedicationMaster(**medication_data.model_dump()))

    async def list_medication_master(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        """Active catalogue entries ordered by generic name."""
        return await Paginator.paginate(
            self.db,
            self.master_repo.list_query(search),
            params,
            MedicationMasterResponseSchema,
        )

    async def get_medication_master(self, medication_id: uuid.UUID) -> MedicationMaster:
        medication = await self.master_repo.get_by_id(medication_id)
        if not medication:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Medication not found",
            )
        return medication

    # ============= Patient Medication =============
    async def create_patient_medication(
        self, medication_data: PatientMedicationCreateSchema
    ) -> PatientMedication:
        """
        Prescribe a catalogue medication.

        Raises:
            HTTPException: 404 when the patient, medication or provider is unknown
        """
        if not await self.patient_repo.get_by_id(medication_data.patient_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
        await self.get_medication_master(medication_data.medication_id)
        if not await self.user_repo.get_by_id(medication_data.provider_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")

        return await self.repo.create(PatientMedication(**medication_data.model_dump()))

    async def list_patient_medications(
        self, patient_id: int, status_filter: Optional[PatientMedicationStatus] = None
    ) -> List[PatientMedication]:
        return await self.repo.get_for_patient(patient_id, status_filter)

    async def get_patient_medication(self, medication_id: uuid.UUID) -> PatientMedication:
        medication = await self.repo.get_by_id(medication_id)
        if not medication:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient medication not found",
            )
        return medication

    async def update_patient_medication(
        self, medication_id: uuid.UUID, update_data: PatientMedicationUpdateSchema
    ) -> PatientMedication:
        medication = await self.get_patient_medication(medication_id)
        changes = update_data.model_dump(exclude_unset=True)

        start_date = changes.get("start_date") or medication.start_date
        end_date = changes.get("end_date")
        if end_date and start_date and _as_naive(end_date) < _as_naive(start_date):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="End date cannot be before start date",
            )
        return await self.repo.update(medication, changes)

    async def discontinue_patient_medication(
        self, medication_id: uuid.UUID, reason: Optional[str] = None
    ) -> PatientMedication:
        """Status becomes discontinued and ``end_date`` now; ``reason`` only replaced when given."""
        medication = await self.get_patient_medication(medication_id)
        medication.end_date = utcnow()
        if reason:
            medication.reason = reason
        return await self.repo.remove(medication)


def _as_naive(value: datetime) -> datetime:
    """Naive UTC, so database values and request values compare."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
