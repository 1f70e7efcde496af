import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator, model_validator

from app.schemas.common_schemas import CamelModel, coerce_datetime, enum_column_type
from app.schemas.user_schemas import ProviderSummarySchema


class DosageForm(str, Enum):
    TABLET = "tablet"
    CAPSULE = "capsule"
    SYRUP = "syrup"
    INJECTION = "injection"
    INHALER = "inhaler"
    CREAM = "cream"
    DROPS = "drops"
    PATCH = "patch"


class MedicationClassification(str, Enum):
    ANTIBIOTIC = "antibiotic"
    ANALGESIC = "analgesic"
    ANTIHYPERTENSIVE = "antihypertensive"
    ANTIDIABETIC = "antidiabetic"
    ANTIHISTAMINE = "antihistamine"
    OTHER = "other"


class PatientMedicationStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DISCONTINUED = "discontinued"
    PAUSED = "paused"


dosage_form_enum = enum_column_type(DosageForm, "dosageform")
classification_enum = enum_column_type(MedicationClassification, "medicationclassification")
patient_medication_status_enum = enum_column_type(
    PatientMedicationStatus, "patientmedicationstatus"
)


def _parse_datetime(v):
    return coerce_datetime(v) if isinstance(v, str) else v


# ============= Medication Master =============
class MedicationMasterCreateSchema(CamelModel):
    generic_name: str = Field(min_length=1, max_length=255)
    brand_name: Optional[str] = Field(default=None, max_length=255)
    dosage_form: DosageForm
    strength: str = Field(min_length=1, max_length=100)
    manufacturer: Optional[str] = Field(default=None, max_length=255)
    classification: MedicationClassification
    description: Optional[str] = None
    is_active: bool = True


class MedicationMasterResponseSchema(CamelModel):
    id: uuid.UUID
    generic_name: str
    brand_name: Optional[str] = None
    dosage_form: DosageForm
    strength: str
    manufacturer: Optional[str] = None
    classification: MedicationClassification
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ============= Patient Medication =============
class PatientMedicationCreateSchema(CamelModel):
    """Prescribe a catalogue medication to a patient."""

    patient_id: int
    medication_id: uuid.UUID
    provider_id: int
    dosage: str = Field(min_length=1, max_length=100)
    frequency: str = Field(min_length=1, max_length=100)
    route: str = Field(min_length=1, max_length=100)
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PatientMedicationStatus = PatientMedicationStatus.ACTIVE
    reason: Optional[str] = None
    instructions: Optional[str] = None
    encounter_id: Optional[uuid.UUID] = None
    adverse_reactions: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _parse_datetime(v)

    @model_validator(mode="after")
    def validate_period(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self


class PatientMedicationUpdateSchema(CamelModel):
    dosage: Optional[str] = Field(default=None, min_length=1, max_length=100)
    frequency: Optional[str] = Field(default=None, min_length=1, max_length=100)
    route: Optional[str] = Field(default=None, min_length=1, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[PatientMedicationStatus] = None
    reason: Optional[str] = None
    instructions: Optional[str] = None
    encounter_id: Optional[uuid.UUID] = None
    adverse_reactions: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _parse_datetime(v)


class DiscontinueMedicationSchema(CamelModel):
    reason: Optional[str] = None


class PatientMedicationResponseSchema(CamelModel):
    id: uuid.UUID
    patient_id: int
    medication_id: uuid.UUID
    provider_id: int
    medication: Optional[MedicationMasterResponseSchema] = None
    provider: Optional[ProviderSummarySchema] = None
    dosage: str
    frequency: str
    route: str
    start_date: datetime
    end_date: Optional[datetime] = None
    status: PatientMedicationStatus
    reason: Optional[str] = None
    instructions: Optional[str] = None
    encounter_id: Optional[uuid.UUID] = None
    adverse_reactions: Optional[str] = None
    created_at: datetime
    updated_at: datetime
