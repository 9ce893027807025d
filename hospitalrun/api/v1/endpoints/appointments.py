"""Appointment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from hospitalrun.dependencies import (
    AppointmentEditor,
    AppointmentReader,
    AppointmentRemover,
    Appointments,
)
from hospitalrun.schemas.appointments import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)

router = APIRouter()

DATE_QUERY_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: AppointmentReader,
    service: Appointments,
) -> AppointmentResponse:
    """
    Schedule a new appointment in the caller's hospital.

    Args:
        data: Appointment creation data
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Created appointment
    """
    return service.create_appointment(current_user, data)


@router.get(
    "/",
    response_model=AppointmentListResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List appointments",
)
async def list_appointments(
    current_user: AppointmentReader,
    service: Appointments,
    date: str | None = Query(None, pattern=DATE_QUERY_PATTERN),
    doctor_id: str | None = Query(None),
    patient_id: str | None = Query(None),
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> AppointmentListResponse:
    """
    List appointments in the caller's hospital with filtering.

    Args:
        current_user: Authenticated user
        service: Appointment service
        date: Filter by date
        doctor_id: Filter by doctor ID
        patient_id: Filter by patient ID
        status_filter: Filter by status
        page: Page number
        limit: Items per page

    Returns:
        Paginated list of appointments
    """
    filters = AppointmentFilters(
        date=date,
        doctor_id=doctor_id,
        patient_id=patient_id,
        status=status_filter,
        page=page,
        limit=limit,
    )
    return service.list_appointments(current_user, filters)


@router.get(
    "/doctor/{doctor_id}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List a doctor's appointments",
)
async def list_doctor_appointments(
    doctor_id: str,
    current_user: AppointmentReader,
    service: Appointments,
    date: str | None = Query(None, pattern=DATE_QUERY_PATTERN),
) -> list[AppointmentResponse]:
    """List a doctor's appointments ordered by date and time."""
    return service.list_doctor_appointments(doctor_id, current_user, date)


@router.get(
    "/patient/{patient_id}",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List a patient's appointments",
)
async def list_patient_appointments(
    patient_id: str,
    current_user: AppointmentReader,
    service: Appointments,
) -> list[AppointmentResponse]:
    """List a patient's appointments ordered by date and time."""
    return service.list_patient_appointments(patient_id, current_user)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: UUID,
    current_user: AppointmentReader,
    service: Appointments,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Raises:
        NotFoundException: If appointment not found in the caller's hospital
    """
    return service.get_appointment(appointment_id, current_user)


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    current_user: AppointmentEditor,
    service: Appointments,
) -> AppointmentResponse:
    """
    Update an existing appointment.

    Args:
        appointment_id: Appointment ID
        data: Update data
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Updated appointment

    Raises:
        NotFoundException: If appointment not found
        ConflictException: If the new slot is already taken
        InvalidTransitionException: If the status change is not allowed
    """
    return service.update_appointment(appointment_id, current_user, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    current_user: AppointmentEditor,
    service: Appointments,
) -> AppointmentResponse:
    """Update appointment status (e.g., start, complete, no-show)."""
    return service.update_appointment_status(appointment_id, current_user, data)


@router.put(
    "/{appointment_id}/confirm",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: UUID,
    current_user: AppointmentEditor,
    service: Appointments,
) -> AppointmentResponse:
    """Confirm a scheduled appointment."""
    return service.confirm_appointment(appointment_id, current_user)


@router.put(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: UUID,
    current_user: AppointmentEditor,
    service: Appointments,
) -> AppointmentResponse:
    """Cancel an appointment, releasing its slot."""
    return service.cancel_appointment(appointment_id, current_user)


@router.delete(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: UUID,
    current_user: AppointmentRemover,
    service: Appointments,
) -> AppointmentResponse:
    """
    Permanently delete an appointment.

    Args:
        appointment_id: Appointment ID
        current_user: Authenticated user
        service: Appointment service

    Returns:
        The removed appointment
    """
    return service.delete_appointment(appointment_id, current_user)
