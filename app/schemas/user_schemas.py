from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.common_schemas import CamelModel, enum_column_type


class UserRole(str, Enum):
    """Staff roles."""

    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    DOCTOR = "doctor"
    NURSE = "nurse"


ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})

user_role_enum = enum_column_type(UserRole, "userrole")


def _strip_required(v: str, field: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(f"{field} cannot be empty")
    return v


class UserBaseSchema(CamelModel):
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    email: EmailStr
    role: UserRole = UserRole.DOCTOR
    department: Optional[str] = Field(default=None, max_length=100)
    license_number: Optional[str] = Field(default=None, max_length=100)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v: str, info) -> str:
        return _strip_required(v, info.field_name.replace("_", " ").capitalize())


class UserCreateSchema(UserBaseSchema):
    """Payload for ``POST /users/create``."""

    password: str = Field(min_length=6, max_length=128)


class UserUpdateSchema(CamelModel):
    """Partial update; only fields present in the request are applied."""

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6, max_length=128)
    role: Optional[UserRole] = None
    department: Optional[str] = Field(default=None, max_length=100)
    license_number: Optional[str] = Field(default=None, max_length=100)
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class UserResponseSchema(CamelModel):
    """User as returned to clients. The password hash is never exposed."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    department: Optional[str] = None
    license_number: Optional[str] = None
    is_active: bool
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ProviderSummarySchema(CamelModel):
    """Provider fields embedded in appointment, encounter and medication payloads."""

    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole
    department: Optional[str] = None


class UserLoginSchema(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

