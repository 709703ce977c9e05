from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional

from ..models.appointment import AppointmentStatus, MIN_DURATION_MINUTES

class AppointmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor: int
    date_time: datetime = Field(..., alias="dateTime")
    duration: int = Field(..., ge=MIN_DURATION_MINUTES)
    reason: str = Field(..., min_length=1)
    # Only honoured for admins booking on behalf of a patient
    patient: Optional[int] = None

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Please add a reason for the appointment")
        return v

class AppointmentUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    doctor: Optional[int] = None
    date_time: Optional[datetime] = Field(None, alias="dateTime")
    duration: Optional[int] = Field(None, ge=MIN_DURATION_MINUTES)
    reason: Optional[str] = Field(None, min_length=1)
    status: Optional[AppointmentStatus] = None

    @field_validator("*")
    @classmethod
    def reject_null(cls, v, info):
        # Explicit nulls would clear required columns
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Please add a reason for the appointment")
        return v

class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str

class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient: UserSummary
    doctor: UserSummary
    date_time: datetime = Field(..., serialization_alias="dateTime")
    duration: int
    reason: str
    status: AppointmentStatus
    created_at: datetime = Field(..., serialization_alias="createdAt")
