from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.common_schemas import CamelModel, enum_column_type


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class BloodType(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"


gender_enum = enum_column_type(Gender, "gender")
blood_type_enum = enum_column_type(BloodType, "bloodtype")


class PatientCreateSchema(CamelModel):
    """Payload for ``POST /patients``. The business ``patientId`` is generated."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date
    gender: Gender
    phone: str = Field(min_length=1, max_length=30)
    email: EmailStr
    address: str = Field(min_length=1)
    emergency_contact: Optional[str] = Field(default=None, max_length=255)
    emergency_phone: Optional[str] = Field(default=None, max_length=30)
    blood_type: Optional[BloodType] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None

    @field_validator("first_name", "last_name", "phone", "address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: date) -> date:
        if v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class PatientUpdateSchema(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = Field(default=None, max_length=255)
    emergency_phone: Optional[str] = Field(default=None, max_length=30)
    blood_type: Optional[BloodType] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v: Optional[date]) -> Optional[date]:
        if v and v > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return v


class PatientResponseSchema(CamelModel):
    id: int
    patient_id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    blood_type: Optional[BloodType] = None
    allergies: Optional[str] = None
    medical_history: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PatientSummarySchema(CamelModel):
    """Patient fields embedded in appointment, encounter and medication payloads."""

    id: int
    patient_id: str
    first_name: str
    last_name: str
    date_of_birth: date
    gender: Gender
    phone: Optional[str] = None
