"""Hospital onboarding schemas"""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ...shared.validators import format_international_phone


class HospitalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1, max_length=100)
    region: str = Field(min_length=1, max_length=100)
    phone: str = Field(min_length=1)
    email: EmailStr
    website: Optional[str] = None
    type: Literal["public", "private"]
    description: Optional[str] = None
    departments: list[str] = Field(default_factory=list)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: str):
        return format_international_phone(v)

    @field_validator("departments")
    @classmethod
    def clean_departments(cls, v: list[str]):
        seen = []
        for name in (d.strip() for d in v):
            if name and name not in seen:
                seen.append(name)
        return seen


class HospitalUpdate(BaseModel):
    """Partial update; omitted fields keep their current value"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1, max_length=100)
    region: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    website: Optional[str] = None
    type: Optional[Literal["public", "private"]] = None
    description: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("phone")
    @classmethod
    def normalize_phone(cls, v: Optional[str]):
        return format_international_phone(v) if v else v


class HospitalCredentials(BaseModel):
    email: str
    temporary_password: str


class HospitalOnboardingResponse(BaseModel):
    success: bool = True
    hospital_id: int
    credentials: HospitalCredentials


class DashboardStats(BaseModel):
    total_patients: int
    total_hospitals: int
    active_hospitals: int
    total_appointments: int
    today_appointments: int
    pending_appointments: int


class DepartmentTypes(BaseModel):
    success: bool = True
    data: list[str]
