import uuid
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.pagination import PaginatedResponse, PaginationParams, Paginator
from app.core.utils import LoggerMixin
from app.models.appointment_model import Appointment
from app.repositories.appointment_repo import AppointmentRepository
from app.repositories.patient_repo import PatientRepository
from app.repositories.sequence_repo import SequenceExhaustedError
from app.repositories.user_repo import UserRepository
from app.schemas.appointment_schemas import (
    AppointmentCreateSchema,
    AppointmentResponseSchema,
    AppointmentStatus,
    AppointmentUpdateSchema,
)


class AppointmentService(LoggerMixin):
    """Service layer for appointment scheduling and check-in."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = AppointmentRepository(self.db)
        self.patient_repo = PatientRepository(self.db)
        self.user_repo = UserRepository(self.db)

    async def _ensure_participants(
        self, patient_id: Optional[int], provider_id: Optional[int]
    ) -> None:
        if patient_id is not None and not await self.patient_repo.get_by_id(patient_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found"
            )
        if provider_id is not None and not await self.user_repo.get_by_id(provider_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found"
            )

    async def create_appointment(self, appointment_data: AppointmentCreateSchema) -> Appointment:
        """
        Book an appointment under the next ``APT<YYYYMMDD><seq>`` id.

        Raises:
            HTTPException: 404 for an unknown patient or provider, 409 when no
                unique id could be allocated
        """
        await self._ensure_participants(
            appointment_data.patient_id, appointment_data.provider_id
        )

        try:
            appointment_id = await self.repo.next_appointment_id()
            appointment = Appointment(
                appointment_id=appointment_id, **appointment_data.model_dump()
            )
            return await self.repo.create(appointment)
        except (IntegrityError, SequenceExhaustedError) as e:
            self.log_error({"event": "appointment_id_allocation_failed", "error": str(e)})
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Could not allocate a unique appointment id, please retry",
            )

    async def list_appointments(
        self, params: PaginationParams, search: Optional[str] = None
    ) -> PaginatedResponse:
        return await Paginator.paginate(
            self.db, self.repo.list_query(search), params, AppointmentResponseSchema
        )

    async def get_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = await self.repo.get_by_id(appointment_id)
        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found",
            )
        return appointment

    async def update_appointment(
        self, appointment_id: uuid.UUID, update_data: AppointmentUpdateSchema
    ) -> Appointment:
        appointment = await self.get_appointment(appointment_id)
        changes = update_data.model_dump(exclude_unset=True)
        await self._ensure_participants(changes.get("patient_id"), changes.get("provider_id"))
        return await self.repo.update(appointment, changes)

    async def delete_appointment(self, appointment_id: uuid.UUID) -> None:
        """Appointments are removed outright."""
        appointment = await self.get_appointment(appointment_id)
        await self.repo.remove(appointment)

    async def check_in(self, appointment_id: uuid.UUID) -> Appointment:
        """Mark the patient as arrived. Checking in twice is a no-op."""
        appointment = await self.get_appointment(appointment_id)
        if appointment.status == AppointmentStatus.CHECKED_IN:
            return appointment
        return await self.repo.update(appointment, {"status": AppointmentStatus.CHECKED_IN})

    async def link_encounter(
        self, appointment_id: uuid.UUID, encounter_id: uuid.UUID
    ) -> Appointment:
        """Attach the encounter that fulfilled this appointment and complete it."""
        appointment = await self.get_appointment(appointment_id)
        return await self.repo.update(
            appointment,
            {"encounter_id": encounter_id, "status": AppointmentStatus.COMPLETED},
        )
