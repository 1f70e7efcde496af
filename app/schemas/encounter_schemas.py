import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from app.schemas.common_schemas import CamelModel, coerce_datetime, enum_column_type
from app.schemas.patient_schemas import PatientSummarySchema
from app.schemas.user_schemas import ProviderSummarySchema


class EncounterType(str, Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE = "routine"


class EncounterStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


encounter_type_enum = enum_column_type(EncounterType, "encountertype")
encounter_status_enum = enum_column_type(EncounterStatus, "encounterstatus")


class EncounterClinicalNotes(CamelModel):
    history_of_present_illness: Optional[str] = None
    physical_examination: Optional[str] = None
    assessment: Optional[str] = None
    plan: Optional[str] = None
    notes: Optional[str] = None


class EncounterCreateSchema(EncounterClinicalNotes):
    """
    Payload for ``POST /encounters``.

    When ``appointmentId`` is given the appointment is linked to the new
    encounter and marked completed.
    """

    patient_id: int
    provider_id: int
    appointment_id: Optional[uuid.UUID] = None
    encounter_type: EncounterType
    encounter_date: datetime
    chief_complaint: str = Field(min_length=1)
    status: EncounterStatus = EncounterStatus.ACTIVE
    duration: Optional[int] = Field(default=None, ge=0)

    @field_validator("encounter_date", mode="before")
    @classmethod
    def parse_encounter_date(cls, v):
        return coerce_datetime(v) if isinstance(v, str) else v


class EncounterUpdateSchema(EncounterClinicalNotes):
    encounter_type: Optional[EncounterType] = None
    encounter_date: Optional[datetime] = None
    chief_complaint: Optional[str] = Field(default=None, min_length=1)
    status: Optional[EncounterStatus] = None
    duration: Optional[int] = Field(default=None, ge=0)

    @field_validator("encounter_date", mode="before")
    @classmethod
    def parse_encounter_date(cls, v):
        return coerce_datetime(v) if isinstance(v, str) else v


class EncounterResponseSchema(EncounterClinicalNotes):
    id: uuid.UUID
    encounter_id: str
    patient_id: Optional[int] = None
    provider_id: Optional[int] = None
    appointment_id: Optional[uuid.UUID] = None
    patient: Optional[PatientSummarySchema] = None
    provider: Optional[ProviderSummarySchema] = None
    encounter_type: EncounterType
    encounter_date: datetime
    chief_complaint: str
    status: EncounterStatus
    duration: Optional[int] = None
    created_at: datetime
    updated_at: datetime
