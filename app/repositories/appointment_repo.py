from typing import Optional

from sqlalchemy import Select
from sqlalchemy.future import select

from app.core.identifiers import APPOINTMENT_ID
from app.core.pagination import search_filter
from app.models.appointment_model import Appointment
from app.models.patient_model import Patient
from app.models.user_model import User
from app.repositories.base_repo import BaseRepository
from app.repositories.sequence_repo import SequenceRepository


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository layer for appointment data access."""

    model = Appointment

    async def next_appointment_id(self) -> str:
        return await SequenceRepository(self.db).next_daily_identifier(
            APPOINTMENT_ID, Appointment.appointment_id
        )

    def list_query(self, search: Optional[str] = None) -> Select:
        """Appointments with patient and provider joined, latest date first."""
        query = (
            select(Appointment)
            .outerjoin(Appointment.patient)
            .outerjoin(Appointment.provider)
        )
        criteria = search_filter(
            search,
            Appointment.appointment_id,
            Appointment.reason,
            Patient.first_name,
            Patient.last_name,
            User.first_name,
            User.last_name,
        )
        if criteria is not None:
            query = query.where(criteria)
        return query.order_by(
            Appointment.appointment_date.desc(), Appointment.appointment_id.desc()
        )
