"""Appointment schemas for request/response validation."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from hospitalrun.schemas.auth import TenantId

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"

    @property
    def is_terminal(self) -> bool:
        """Whether no further lifecycle progress is expected."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW}
)


class AppointmentType(str, Enum):
    """Appointment type enumeration."""

    CONSULTATION = "consultation"
    FOLLOW_UP = "follow_up"
    EMERGENCY = "emergency"
    SURGERY = "surgery"
    EXAMINATION = "examination"


def _validate_date(v: str) -> str:
    try:
        datetime.strptime(v, DATE_FORMAT)
    except ValueError:
        raise ValueError("Date must be a valid calendar date in YYYY-MM-DD format") from None
    return v


def _validate_time(v: str) -> str:
    try:
        datetime.strptime(v, TIME_FORMAT)
    except ValueError:
        raise ValueError("Time must be a valid 24-hour time in HH:MM format") from None
    return v


class AppointmentCreate(BaseModel):
    """Schema for creating a new appointment."""

    patient_id: str = Field(..., min_length=1, max_length=100)
    doctor_id: str = Field(..., min_length=1, max_length=100)
    date: str = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$", examples=["2024-01-15"])
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$", examples=["09:00"])
    duration_minutes: int | None = Field(
        None,
        gt=0,
        description="Defaults to the configured appointment duration",
    )
    type: AppointmentType
    notes: str | None = Field(None, max_length=1000)
    symptoms: str | None = Field(None, max_length=1000)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        """Validate calendar date."""
        return _validate_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Validate time of day."""
        return _validate_time(v)


class AppointmentUpdate(BaseModel):
    """Schema for updating an existing appointment."""

    patient_id: str | None = Field(None, min_length=1, max_length=100)
    doctor_id: str | None = Field(None, min_length=1, max_length=100)
    date: str | None = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$")
    duration_minutes: int | None = Field(None, gt=0)
    type: AppointmentType | None = None
    status: AppointmentStatus | None = None
    notes: str | None = Field(None, max_length=1000)
    symptoms: str | None = Field(None, max_length=1000)
    diagnosis: str | None = Field(None, max_length=2000)
    prescription: list[str] | None = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str | None) -> str | None:
        """Validate calendar date."""
        return _validate_date(v) if v is not None else v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str | None) -> str | None:
        """Validate time of day."""
        return _validate_time(v) if v is not None else v


class AppointmentStatusUpdate(BaseModel):
    """Schema for updating appointment status."""

    status: AppointmentStatus
    notes: str | None = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    """Schema for appointment response."""

    id: UUID
    patient_id: str
    doctor_id: str
    date: str
    time: str
    duration_minutes: int
    type: AppointmentType
    status: AppointmentStatus
    notes: str | None = None
    symptoms: str | None = None
    diagnosis: str | None = None
    prescription: list[str] | None = None
    tenant: TenantId
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AppointmentListResponse(BaseModel):
    """Schema for paginated appointment list response."""

    total: int
    page: int
    limit: int
    total_pages: int
    items: list[AppointmentResponse]


class AppointmentFilters(BaseModel):
    """Schema for appointment filtering."""

    date: str | None = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    doctor_id: str | None = None
    patient_id: str | None = None
    status: AppointmentStatus | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
