from typing import Optional

from sqlalchemy import Select
from sqlalchemy.future import select

from app.core.pagination import search_filter
from app.models.patient_model import Patient
from app.repositories.base_repo import BaseRepository


class PatientRepository(BaseRepository[Patient]):
    """Repository layer for patient data access."""

    model = Patient

    def list_query(self, search: Optional[str] = None) -> Select:
        query = select(Patient).where(Patient.is_active.is_(True))
        criteria = search_filter(
            search, Patient.first_name, Patient.last_name, Patient.patient_id
        )
        if criteria is not None:
            query = query.where(criteria)
        return query.order_by(Patient.created_at.desc(), Patient.id.desc())
