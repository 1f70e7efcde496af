from typing import List, Optional

from sqlalchemy import Select
from sqlalchemy.future import select

from app.core.pagination import search_filter
from app.models.medication_model import MedicationMaster, PatientMedication
from app.repositories.base_repo import BaseRepository
from app.schemas.medication_schemas import PatientMedicationStatus


class MedicationMasterRepository(BaseRepository[MedicationMaster]):
    """Medication catalogue access."""

    model = MedicationMaster

    def list_query(self, search: Optional[str] = None) -> Select:
        query = select(MedicationMaster).where(MedicationMaster.is_active.is_(True))
        criteria = search_filter(
            search,
            MedicationMaster.generic_name,
            MedicationMaster.brand_name,
            MedicationMaster.manufacturer,
        )
        if criteria is not None:
            query = query.where(criteria)
        return query.order_by(MedicationMaster.generic_name.asc())


class PatientMedicationRepository(BaseRepository[PatientMedication]):
    """Prescriptions linking patients to catalogue medications."""

    model = PatientMedication

    async def get_for_patient(
        self,
        patient_id: int,
        status: Optional[PatientMedicationStatus] = None,
    ) -> List[PatientMedication]:
        """
        All medications of one patient, most recently started first.

        Args:
            patient_id: Patient surrogate id
            status: Optional status filter
        """
        query = select(PatientMedication).where(PatientMedication.patient_id == patient_id)
        if status is not None:
            query = query.where(PatientMedication.status == status)
        result = await self.db.execute(
            query.order_by(PatientMedication.start_date.desc())
        )
        return list(result.scalars().all())

