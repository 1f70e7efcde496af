from datetime import date, datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Boolean, Date, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.lifecycle import DeletePolicy
from app.db.base import Base
from app.schemas.patient_schemas import (
    BloodType,
    Gender,
    blood_type_enum,
    gender_enum,
)


class Patient(Base):
    """Patient demographics and medical background."""

    __tablename__ = "patients"
    __delete_policy__ = DeletePolicy.SOFT_DEACTIVATE

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[Gender] = mapped_column(gender_enum, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    emergency_contact: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    emergency_phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    blood_type: Mapped[Optional[BloodType]] = mapped_column(
        blood_type_enum, nullable=True
    )
    allergies: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    medical_history: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, patient_id={self.patient_id})>"
