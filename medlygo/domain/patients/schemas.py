"""Patient profile schemas"""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import format_international_phone, parse_date

Gender = Literal["male", "female", "other"]


class PatientProfileFields(BaseModel):
    """Fields a patient fills in during onboarding and edits on their profile"""

    full_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[str] = Field(default=None, max_length=1000)
    ghana_card_id: Optional[str] = Field(default=None, max_length=50)
    emergency_contact_name: Optional[str] = Field(default=None, max_length=255)
    emergency_contact_phone: Optional[str] = Field(default=None, max_length=50)

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def validate_date_of_birth(cls, v):
        if v in (None, ""):
            return None
        return parse_date(v)

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, v: Optional[date]):
        if v and v > datetime.utcnow().date():
            raise ValueError("Date of birth cannot be in the future")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v):
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("phone", "emergency_contact_phone")
    @classmethod
    def normalize_phone(cls, v: Optional[str]):
        return format_international_phone(v) if v else None

    @field_validator("ghana_card_id")
    @classmethod
    def normalize_ghana_card(cls, v: Optional[str]):
        v = (v or "").strip().upper()
        return v or None


class PatientOnboarding(PatientProfileFields):
    phone: str = Field(min_length=1, max_length=50)


class PatientProfileUpdate(PatientProfileFields):
    pass


class PatientProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None
    ghana_card_id: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
