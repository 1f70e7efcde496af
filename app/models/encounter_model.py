import uuid
from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import TIMESTAMP, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.lifecycle import DeletePolicy
from app.db.base import Base
from app.schemas.encounter_schemas import (
    EncounterStatus,
    EncounterType,
    encounter_status_enum,
    encounter_type_enum,
)

if TYPE_CHECKING:
    from app.models.patient_model import Patient
    from app.models.user_model import User


class Encounter(Base):
    """Clinical visit record: complaint, examination, assessment and plan."""

    __tablename__ = "encounters"
    __delete_policy__ = DeletePolicy.SOFT_CANCEL
    __cancelled_status__ = EncounterStatus.CANCELLED

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    encounter_id: Mapped[str] = mapped_column(
        String(32),
        unique=True,
        index=True,
        nullable=False,
    )
    patient_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    provider_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Loose reference to appointments.id
    appointment_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )
    encounter_type: Mapped[EncounterType] = mapped_column(
        encounter_type_enum, nullable=False
    )
    encounter_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, index=True
    )
    chief_complaint: Mapped[str] = mapped_column(String(500), nullable=False)
    history_of_present_illness: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    physical_examination: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assessment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    plan: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[EncounterStatus] = mapped_column(
        encounter_status_enum,
        default=EncounterStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
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

    patient: Mapped[Optional["Patient"]] = relationship("Patient", lazy="selectin")
    provider: Mapped[Optional["User"]] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Encounter(encounter_id={self.encounter_id}, status={self.status.value})>"
