import re
import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common_schemas import CamelModel, enum_column_type
from app.schemas.patient_schemas import PatientSummarySchema
from app.schemas.user_schemas import ProviderSummarySchema


class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE = "routine"
    CHECKUP = "checkup"


class AppointmentStatus(str, Enum):
    """Any status may be written by an update; no transition table is enforced."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked-in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


appointment_type_enum = enum_column_type(AppointmentType, "appointmenttype")
appointment_status_enum = enum_column_type(AppointmentStatus, "appointmentstatus")

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def _validate_time(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not TIME_PATTERN.match(v):
        raise ValueError("Appointment time must be HH:MM (24h)")
    return v


class AppointmentCreateSchema(CamelModel):
    """Payload for ``POST /appointments``. ``appointmentId`` is generated."""

    patient_id: int
    provider_id: int
    appointment_date: date
    appointment_time: str
    duration: int = Field(default=30, ge=1, le=24 * 60)
    appointment_type: AppointmentType
    reason: str = Field(min_length=1)
    notes: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_time(v)


class AppointmentUpdateSchema(CamelModel):
    patient_id: Optional[int] = None
    provider_id: Optional[int] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1, le=24 * 60)
    appointment_type: Optional[AppointmentType] = None
    reason: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    encounter_id: Optional[uuid.UUID] = None

    @field_validator("appointment_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _validate_time(v)


class AppointmentResponseSchema(CamelModel):
    id: uuid.UUID
    appointment_id: str
    patient_id: Optional[int] = None
    provider_id: Optional[int] = None
    patient: Optional[PatientSummarySchema] = None
    provider: Optional[ProviderSummarySchema] = None
    appointment_date: date
    appointment_time: str
    duration: int
    appointment_type: AppointmentType
    reason: str
    notes: Optional[str] = None
    status: AppointmentStatus
    encounter_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
