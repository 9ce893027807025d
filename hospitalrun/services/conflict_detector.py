"""Doctor calendar conflict detection."""

from collections.abc import Iterable
from datetime import datetime, timedelta
from uuid import UUID

from hospitalrun.models.appointments import Appointment
from hospitalrun.schemas.appointments import DATE_FORMAT, TIME_FORMAT, AppointmentStatus

# Statuses that release the slot back to the doctor's calendar
FREE_SLOT_STATUSES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW})


def occupies_calendar(status: AppointmentStatus) -> bool:
    """Whether an appointment in ``status`` blocks its time slot."""
    return status not in FREE_SLOT_STATUSES


def appointment_interval(date: str, time: str, duration_minutes: int) -> tuple[datetime, datetime]:
    """
    Build the half-open interval covered by an appointment.

    The end is computed on the combined date and time, so a late slot runs
    past midnight instead of wrapping around.

    Args:
        date: Calendar date (YYYY-MM-DD)
        time: Start time (HH:MM)
        duration_minutes: Length of the slot

    Returns:
        Start and end datetimes
    """
    start = datetime.strptime(f"{date} {time}", f"{DATE_FORMAT} {TIME_FORMAT}")
    return start, start + timedelta(minutes=duration_minutes)


def has_conflict(
    appointments: Iterable[Appointment],
    doctor_id: str,
    date: str,
    time: str,
    duration_minutes: int,
    exclude_id: UUID | None = None,
) -> bool:
    """
    Check whether a candidate slot overlaps an existing appointment.

    Only appointments of the same doctor on the same date are compared.
    Cancelled and no-show appointments are ignored, as is ``exclude_id``
    (the appointment being rescheduled). Touching intervals do not overlap,
    so back-to-back slots are allowed.

    Args:
        appointments: Appointments visible to the caller
        doctor_id: Doctor of the candidate slot
        date: Candidate date (YYYY-MM-DD)
        time: Candidate start time (HH:MM)
        duration_minutes: Candidate length, not validated here
        exclude_id: Appointment to skip

    Returns:
        True on the first overlap found, False otherwise
    """
    start, end = appointment_interval(date, time, duration_minutes)

    for existing in appointments:
        if existing.id == exclude_id:
            continue
        if existing.doctor_id != doctor_id or existing.date != date:
            continue
        if not occupies_calendar(existing.status):
            continue

        existing_start, existing_end = appointment_interval(
            existing.date, existing.time, existing.duration_minutes
        )
        if start < existing_end and end > existing_start:
            return True

    return False
