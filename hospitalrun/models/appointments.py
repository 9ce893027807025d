"""Appointment record held by the appointment store."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from hospitalrun.schemas.appointments import AppointmentStatus, AppointmentType
from hospitalrun.schemas.auth import TenantId


class Appointment(BaseModel):
    """Stored appointment.

    ``id`` and ``tenant`` are fixed at creation; every other field may be
    changed by the lifecycle service, which also refreshes ``updated_at``.
    """

    id: UUID = Field(default_factory=uuid4)

    # Ownership / references
    patient_id: str
    doctor_id: str
    tenant: TenantId

    # Slot
    date: str
    time: str
    duration_minutes: int

    # Appointment details
    type: AppointmentType
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    notes: str | None = None
    symptoms: str | None = None
    diagnosis: str | None = None
    prescription: list[str] | None = None

    # Audit fields
    created_at: datetime
    updated_at: datetime

    model_config = {"validate_assignment": True}
