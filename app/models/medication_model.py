import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import TIMESTAMP, Boolean, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.lifecycle import DeletePolicy
from app.db.base import Base
from app.schemas.medication_schemas import (
    DosageForm,
    MedicationClassification,
    PatientMedicationStatus,
    classification_enum,
    dosage_form_enum,
    patient_medication_status_enum,
)

if TYPE_CHECKING:
    from app.models.patient_model import Patient
    from app.models.user_model import User


class MedicationMaster(Base):
    """Medication catalogue entry."""

    __tablename__ = "medication_master"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    generic_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    brand_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    dosage_form: Mapped[DosageForm] = mapped_column(dosage_form_enum, nullable=False)
    strength: Mapped[str] = mapped_column(String(100), nullable=False)
    manufacturer: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    classification: Mapped[MedicationClassification] = mapped_column(
        classification_enum, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class PatientMedication(Base):
    """A catalogue medication prescribed to a patient."""

    __tablename__ = "patient_medications"
    __delete_policy__ = DeletePolicy.SOFT_CANCEL
    __cancelled_status__ = PatientMedicationStatus.DISCONTINUED

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    medication_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("medication_master.id", ondelete="RESTRICT"),
        nullable=False,
    )
    provider_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    dosage: Mapped[str] = mapped_column(String(100), nullable=False)
    frequency: Mapped[str] = mapped_column(String(100), nullable=False)
    route: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_date: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    status: Mapped[PatientMedicationStatus] = mapped_column(
        patient_medication_status_enum,
        default=PatientMedicationStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Loose reference to encounters.id
    encounter_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )
    adverse_reactions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    patient: Mapped["Patient"] = relationship("Patient", lazy="selectin")
    medication: Mapped[MedicationMaster] = relationship(MedicationMaster, lazy="selectin")
    provider: Mapped["User"] = relationship("User", lazy="selectin")
