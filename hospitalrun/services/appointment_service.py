"""Appointment service for business logic."""

import math
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

import structlog

from hospitalrun.config import settings
from hospitalrun.core.exceptions import (
    ConflictException,
    InvalidTransitionException,
    ValidationException,
)
from hospitalrun.database import AppointmentStore
from hospitalrun.models.appointments import Appointment
from hospitalrun.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from hospitalrun.schemas.auth import AuthenticatedUser
from hospitalrun.services.conflict_detector import has_conflict, occupies_calendar

logger = structlog.get_logger()

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.CONFIRMED,
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}

# Fields that move an appointment on the doctor's calendar
SLOT_FIELDS = ("doctor_id", "date", "time", "duration_minutes")


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Check whether ``current -> target`` is a legal status change."""
    return target in ALLOWED_TRANSITIONS[current]


def _now() -> datetime:
    return datetime.now(UTC)


def _sort_key(appointment: Appointment) -> tuple[str, str]:
    # ISO date and zero-padded HH:MM order lexicographically
    return appointment.date, appointment.time


class AppointmentService:
    """Service for managing appointments."""

    def __init__(self, store: AppointmentStore):
        """Initialize service with the appointment store."""
        self.store = store

    @staticmethod
    def _validate_duration(duration_minutes: int) -> None:
        # Requests are validated by their schemas; this guards direct callers
        if duration_minutes <= 0:
            raise ValidationException("Appointment duration must be a positive number of minutes")

    def _ensure_free_slot(
        self,
        user: AuthenticatedUser,
        doctor_id: str,
        date: str,
        time: str,
        duration_minutes: int,
        exclude_id: UUID | None = None,
    ) -> None:
        """Raise ConflictException if the slot overlaps the doctor's calendar.

        Must be called inside ``store.transaction()``.
        """
        same_day = self.store.query(user.tenant, doctor_id=doctor_id, date=date)
        if has_conflict(same_day, doctor_id, date, time, duration_minutes, exclude_id):
            logger.info(
                "appointment_conflict",
                doctor_id=doctor_id,
                date=date,
                time=time,
                duration_minutes=duration_minutes,
                exclude_id=str(exclude_id) if exclude_id else None,
                tenant=str(user.tenant),
            )
            raise ConflictException("Schedule conflict detected for this doctor")

    def create_appointment(
        self,
        user: AuthenticatedUser,
        data: AppointmentCreate,
    ) -> AppointmentResponse:
        """
        Create a new appointment.

        Args:
            user: Authenticated caller; the appointment joins the caller's tenant
            data: Appointment creation data

        Returns:
            Created appointment

        Raises:
            ConflictException: If the slot overlaps another appointment
        """
        duration = data.duration_minutes
        if duration is None:
            duration = settings.default_appointment_duration
        self._validate_duration(duration)

        with self.store.transaction():
            self._ensure_free_slot(user, data.doctor_id, data.date, data.time, duration)

            now = _now()
            appointment = Appointment(
                patient_id=data.patient_id,
                doctor_id=data.doctor_id,
                tenant=user.tenant,
                date=data.date,
                time=data.time,
                duration_minutes=duration,
                type=data.type,
                status=AppointmentStatus.SCHEDULED,
                notes=data.notes,
                symptoms=data.symptoms,
                created_at=now,
                updated_at=now,
            )
            created = self.store.insert(appointment)

        logger.info(
            "appointment_created",
            appointment_id=str(created.id),
            doctor_id=created.doctor_id,
            date=created.date,
            time=created.time,
            user_id=user.id,
        )
        return AppointmentResponse.model_validate(created)

    def get_appointment(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
    ) -> AppointmentResponse:
        """
        Get appointment by ID.

        Raises:
            NotFoundException: If appointment not found in the caller's tenant
        """
        appointment = self.store.get(appointment_id, user.tenant)
        return AppointmentResponse.model_validate(appointment)

    def list_appointments(
        self,
        user: AuthenticatedUser,
        filters: AppointmentFilters,
    ) -> AppointmentListResponse:
        """
        List appointments with filtering and pagination.

        Args:
            user: Authenticated caller
            filters: Filter and pagination parameters

        Returns:
            Page of appointments ordered by date and time
        """
        matches = self.store.query(
            user.tenant,
            date=filters.date,
            doctor_id=filters.doctor_id,
            patient_id=filters.patient_id,
            status=filters.status,
        )
        matches.sort(key=_sort_key)

        total = len(matches)
        offset = (filters.page - 1) * filters.limit
        page_items = matches[offset : offset + filters.limit]

        return AppointmentListResponse(
            total=total,
            page=filters.page,
            limit=filters.limit,
            total_pages=math.ceil(total / filters.limit),
            items=[AppointmentResponse.model_validate(a) for a in page_items],
        )

    def list_doctor_appointments(
        self,
        doctor_id: str,
        user: AuthenticatedUser,
        date: str | None = None,
    ) -> list[AppointmentResponse]:
        """List a doctor's appointments, optionally for a single date."""
        matches = self.store.query(user.tenant, doctor_id=doctor_id, date=date)
        return [AppointmentResponse.model_validate(a) for a in sorted(matches, key=_sort_key)]

    def list_patient_appointments(
        self,
        patient_id: str,
        user: AuthenticatedUser,
    ) -> list[AppointmentResponse]:
        """List a patient's appointments."""
        matches = self.store.query(user.tenant, patient_id=patient_id)
        return [AppointmentResponse.model_validate(a) for a in sorted(matches, key=_sort_key)]

    def update_appointment(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
        data: AppointmentUpdate,
    ) -> AppointmentResponse:
        """
        Update an existing appointment.

        Slot changes (doctor, date, time, duration) are re-checked against
        the doctor's calendar with the appointment itself excluded. A status
        in the payload must be a legal transition from the current status.

        Args:
            appointment_id: Appointment ID
            user: Authenticated caller
            data: Update data

        Returns:
            Updated appointment

        Raises:
            NotFoundException: If appointment not found
            ConflictException: If the new slot overlaps another appointment
            InvalidTransitionException: If the status change is not allowed
        """
        changes: dict[str, Any] = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }

        with self.store.transaction():
            current = self.store.get(appointment_id, user.tenant)

            if not changes:
                # No changes, return current state
                return AppointmentResponse.model_validate(current)

            target_status = changes.get("status")
            if target_status is not None and target_status != current.status:
                if not can_transition(current.status, target_status):
                    raise InvalidTransitionException(current.status.value, target_status.value)

            merged = current.model_copy(update=changes)
            slot_changed = any(getattr(merged, f) != getattr(current, f) for f in SLOT_FIELDS)
            if slot_changed:
                self._validate_duration(merged.duration_minutes)
            if slot_changed and occupies_calendar(merged.status):
                self._ensure_free_slot(
                    user,
                    merged.doctor_id,
                    merged.date,
                    merged.time,
                    merged.duration_minutes,
                    exclude_id=current.id,
                )

            now = _now()

            def apply(record: Appointment) -> None:
                for field, value in changes.items():
                    setattr(record, field, value)
                record.updated_at = now

            updated = self.store.update(appointment_id, user.tenant, apply)

        logger.info(
            "appointment_updated",
            appointment_id=str(appointment_id),
            fields=sorted(changes),
            user_id=user.id,
        )
        return AppointmentResponse.model_validate(updated)

    def _transition(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
        target: AppointmentStatus,
        notes: str | None = None,
    ) -> AppointmentResponse:
        with self.store.transaction():
            current = self.store.get(appointment_id, user.tenant)
            if not can_transition(current.status, target):
                raise InvalidTransitionException(current.status.value, target.value)

            now = _now()

            def apply(record: Appointment) -> None:
                record.status = target
                if notes:
                    record.notes = notes
                record.updated_at = now

            updated = self.store.update(appointment_id, user.tenant, apply)

        logger.info(
            "appointment_status_changed",
            appointment_id=str(appointment_id),
            old_status=current.status.value,
            new_status=target.value,
            user_id=user.id,
        )
        return AppointmentResponse.model_validate(updated)

    def update_appointment_status(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
        data: AppointmentStatusUpdate,
    ) -> AppointmentResponse:
        """
        Move an appointment to another status.

        Raises:
            NotFoundException: If appointment not found
            InvalidTransitionException: If the status change is not allowed
        """
        return self._transition(appointment_id, user, data.status, data.notes)

    def confirm_appointment(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
    ) -> AppointmentResponse:
        """Confirm a scheduled appointment."""
        with self.store.transaction():
            current = self.store.get(appointment_id, user.tenant)
            if current.status != AppointmentStatus.SCHEDULED:
                raise InvalidTransitionException(
                    current.status.value, AppointmentStatus.CONFIRMED.value
                )
            return self._transition(appointment_id, user, AppointmentStatus.CONFIRMED)

    def cancel_appointment(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
    ) -> AppointmentResponse:
        """Cancel an appointment that has not reached a terminal status."""
        return self._transition(appointment_id, user, AppointmentStatus.CANCELLED)

    def delete_appointment(
        self,
        appointment_id: UUID,
        user: AuthenticatedUser,
    ) -> AppointmentResponse:
        """
        Permanently delete an appointment, whatever its status.

        Raises:
            NotFoundException: If appointment not found
        """
        deleted = self.store.delete(appointment_id, user.tenant)
        logger.info(
            "appointment_deleted",
            appointment_id=str(appointment_id),
            status=deleted.status.value,
            user_id=user.id,
        )
        return AppointmentResponse.model_validate(deleted)
