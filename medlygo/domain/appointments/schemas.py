"""Appointment domain schemas - Pydantic models for validation"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...shared.validators import parse_date, parse_time


class AppointmentCreate(BaseModel):
    """Schema for a patient booking request"""

    hospital_id: int
    department_id: int
    appointment_date: date
    start_time: time
    reason: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("appointment_date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_date(v)

    @field_validator("start_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return parse_time(v)

    @field_validator("appointment_date")
    @classmethod
    def not_in_past(cls, v: date):
        if v < datetime.utcnow().date():
            raise ValueError("Appointment date cannot be in the past")
        return v


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class SuggestionResponse(BaseModel):
    accept: bool


class RejectRequest(BaseModel):
    rejection_reason: str = Field(min_length=1, max_length=1000)


class SuggestRequest(BaseModel):
    suggested_date: date
    suggested_time: time
    reason: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("suggested_date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_date(v)

    @field_validator("suggested_time", mode="before")
    @classmethod
    def validate_time(cls, v):
        return parse_time(v)


class AppointmentResponse(BaseModel):
    """Schema for appointment list/detail responses"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_number: str
    patient_id: int
    hospital_id: int
    department_id: int
    appointment_date: date
    start_time: time
    status: str
    reason: Optional[str] = None
    cancellation_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    suggested_date: Optional[date] = None
    suggested_time: Optional[time] = None
    reviewed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class ActionResult(BaseModel):
    """Uniform outcome of a lifecycle operation; failures never raise to the caller"""

    success: bool
    error: Optional[str] = None
    code: Optional[str] = None
    status_code: int = Field(default=200, exclude=True)
    reference_number: Optional[str] = None
    appointment_id: Optional[int] = None
