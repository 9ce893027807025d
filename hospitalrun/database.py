"""Appointment storage and store dependency."""

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from uuid import UUID

from hospitalrun.core.exceptions import DuplicateIdException, NotFoundException
from hospitalrun.models.appointments import Appointment
from hospitalrun.schemas.appointments import AppointmentStatus
from hospitalrun.schemas.auth import TenantId

Mutator = Callable[[Appointment], None]


class AppointmentStore(ABC):
    """Keyed appointment storage scoped by tenant."""

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Hold the write lock for a check-then-commit sequence."""

    @abstractmethod
    def insert(self, appointment: Appointment) -> Appointment:
        """Add a new record."""

    @abstractmethod
    def get(self, appointment_id: UUID, tenant: TenantId) -> Appointment:
        """Return a tenant's record by id."""

    @abstractmethod
    def update(self, appointment_id: UUID, tenant: TenantId, mutator: Mutator) -> Appointment:
        """Apply ``mutator`` to a tenant's record in place."""

    @abstractmethod
    def delete(self, appointment_id: UUID, tenant: TenantId) -> Appointment:
        """Remove and return a tenant's record."""

    @abstractmethod
    def query(
        self,
        tenant: TenantId,
        *,
        date: str | None = None,
        doctor_id: str | None = None,
        patient_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        """Return a tenant's records matching every given filter."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored records across all tenants."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""


class InMemoryAppointmentStore(AppointmentStore):
    """
    Process-local appointment store.

    Records live in a dict keyed by id. A re-entrant lock serializes writes,
    and ``transaction()`` exposes the same lock so the service can run a
    conflict check and its commit as one unit. Every returned record is a
    deep copy; stored state only changes through ``insert``, ``update`` and
    ``delete``.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._records: dict[UUID, Appointment] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    def _find(self, appointment_id: UUID, tenant: TenantId) -> Appointment:
        record = self._records.get(appointment_id)
        if record is None or record.tenant != tenant:
            raise NotFoundException("Appointment not found")
        return record

    def insert(self, appointment: Appointment) -> Appointment:
        with self._lock:
            if appointment.id in self._records:
                raise DuplicateIdException(f"Appointment {appointment.id} already exists")
            self._records[appointment.id] = appointment.model_copy(deep=True)
            return appointment.model_copy(deep=True)

    def get(self, appointment_id: UUID, tenant: TenantId) -> Appointment:
        with self._lock:
            return self._find(appointment_id, tenant).model_copy(deep=True)

    def update(self, appointment_id: UUID, tenant: TenantId, mutator: Mutator) -> Appointment:
        with self._lock:
            record = self._find(appointment_id, tenant)
            # Mutate a copy so a failing mutator leaves the stored record intact
            updated = record.model_copy(deep=True)
            mutator(updated)
            self._records[appointment_id] = updated
            return updated.model_copy(deep=True)

    def delete(self, appointment_id: UUID, tenant: TenantId) -> Appointment:
        with self._lock:
            self._find(appointment_id, tenant)
            return self._records.pop(appointment_id)

    def query(
        self,
        tenant: TenantId,
        *,
        date: str | None = None,
        doctor_id: str | None = None,
        patient_id: str | None = None,
        status: AppointmentStatus | None = None,
    ) -> list[Appointment]:
        with self._lock:
            return [
                record.model_copy(deep=True)
                for record in self._records.values()
                if record.tenant == tenant
                and (date is None or record.date == date)
                and (doctor_id is None or record.doctor_id == doctor_id)
                and (patient_id is None or record.patient_id == patient_id)
                and (status is None or record.status == status)
            ]

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


# Process-wide store instance
_store: AppointmentStore = InMemoryAppointmentStore()


def get_store() -> AppointmentStore:
    """Dependency for getting the appointment store."""
    return _store
