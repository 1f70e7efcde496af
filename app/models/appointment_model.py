import uuid
from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import TIMESTAMP, Date, ForeignKey, Integer, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.lifecycle import DeletePolicy
from app.db.base import Base
from app.schemas.appointment_schemas import (
    AppointmentStatus,
    AppointmentType,
    appointment_status_enum,
    appointment_type_enum,
)

if TYPE_CHECKING:
    from app.models.patient_model import Patient
    from app.models.user_model import User


class Appointment(Base):
    """Scheduled visit between a patient and a provider."""

    __tablename__ = "appointments"
    __delete_policy__ = DeletePolicy.HARD_DELETE

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    appointment_id: Mapped[str] = mapped_column(
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
    appointment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    appointment_time: Mapped[str] = mapped_column(String(8), nullable=False)
    duration: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    appointment_type: Mapped[AppointmentType] = mapped_column(
        appointment_type_enum, nullable=False
    )
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[AppointmentStatus] = mapped_column(
        appointment_status_enum,
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
        index=True,
    )
    # Loose reference to encounters.id
    encounter_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True), nullable=True
    )
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
        return f"<Appointment(appointment_id={self.appointment_id}, status={self.status.value})>"
