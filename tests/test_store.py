"""Tests for the in-memory appointment store."""

from datetime import UTC, datetime
from uuid import uuid4

import pytest

from hospitalrun.core.exceptions import DuplicateIdException, NotFoundException
from hospitalrun.database import InMemoryAppointmentStore
from hospitalrun.models.appointments import Appointment
from hospitalrun.schemas.appointments import AppointmentStatus, AppointmentType
from hospitalrun.schemas.auth import TenantId

TENANT_A = TenantId(hospital_id="h1", organization_id="o1")
TENANT_B = TenantId(hospital_id="h2", organization_id="o1")


def _appointment(tenant: TenantId = TENANT_A, **overrides) -> Appointment:
    now = datetime.now(UTC)
    values = {
        "patient_id": "P1",
        "doctor_id": "D1",
        "tenant": tenant,
        "date": "2024-01-15",
        "time": "09:00",
        "duration_minutes": 30,
        "type": AppointmentType.CONSULTATION,
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Appointment(**values)


def test_insert_and_get(store: InMemoryAppointmentStore):
    """Test storing and fetching a record."""
    appointment = store.insert(_appointment())

    fetched = store.get(appointment.id, TENANT_A)
    assert fetched == appointment
    assert store.count() == 1


def test_insert_duplicate_id(store: InMemoryAppointmentStore):
    """Test that ids cannot be reused."""
    appointment = store.insert(_appointment())

    with pytest.raises(DuplicateIdException):
        store.insert(_appointment(id=appointment.id, time="10:00"))

    assert store.get(appointment.id, TENANT_A).time == "09:00"


def test_get_missing(store: InMemoryAppointmentStore):
    """Test fetching an unknown id."""
    with pytest.raises(NotFoundException):
        store.get(uuid4(), TENANT_A)


def test_tenant_mismatch_is_not_found(store: InMemoryAppointmentStore):
    """Test that other tenants cannot read, update or delete a record."""
    appointment = store.insert(_appointment())

    with pytest.raises(NotFoundException):
        store.get(appointment.id, TENANT_B)
    with pytest.raises(NotFoundException):
        store.update(appointment.id, TENANT_B, lambda r: setattr(r, "notes", "x"))
    with pytest.raises(NotFoundException):
        store.delete(appointment.id, TENANT_B)

    assert store.get(appointment.id, TENANT_A).notes is None


def test_returned_records_are_copies(store: InMemoryAppointmentStore):
    """Test that callers cannot mutate stored state directly."""
    appointment = store.insert(_appointment())

    fetched = store.get(appointment.id, TENANT_A)
    fetched.notes = "changed outside the store"

    assert store.get(appointment.id, TENANT_A).notes is None


def test_update_applies_mutator(store: InMemoryAppointmentStore):
    """Test in-place updates."""
    appointment = store.insert(_appointment())

    updated = store.update(
        appointment.id,
        TENANT_A,
        lambda r: setattr(r, "status", AppointmentStatus.CONFIRMED),
    )

    assert updated.status == AppointmentStatus.CONFIRMED
    assert store.get(appointment.id, TENANT_A).status == AppointmentStatus.CONFIRMED


def test_failing_mutator_leaves_record_unchanged(store: InMemoryAppointmentStore):
    """Test that a mutator raising midway does not corrupt the record."""
    appointment = store.insert(_appointment())

    def mutator(record: Appointment) -> None:
        record.notes = "partial"
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.update(appointment.id, TENANT_A, mutator)

    assert store.get(appointment.id, TENANT_A).notes is None


def test_delete(store: InMemoryAppointmentStore):
    """Test permanent removal."""
    appointment = store.insert(_appointment())

    deleted = store.delete(appointment.id, TENANT_A)

    assert deleted.id == appointment.id
    assert store.count() == 0
    with pytest.raises(NotFoundException):
        store.delete(appointment.id, TENANT_A)


def test_query_filters(store: InMemoryAppointmentStore):
    """Test tenant scoping and optional filters."""
    store.insert(_appointment())
    store.insert(_appointment(time="10:00", patient_id="P2"))
    store.insert(_appointment(doctor_id="D2", date="2024-01-16"))
    store.insert(_appointment(status=AppointmentStatus.CANCELLED, time="11:00"))
    store.insert(_appointment(tenant=TENANT_B))

    assert len(store.query(TENANT_A)) == 4
    assert len(store.query(TENANT_B)) == 1
    assert len(store.query(TENANT_A, doctor_id="D1")) == 3
    assert len(store.query(TENANT_A, date="2024-01-16")) == 1
    assert len(store.query(TENANT_A, patient_id="P2")) == 1
    assert len(store.query(TENANT_A, status=AppointmentStatus.CANCELLED)) == 1
    assert len(store.query(TENANT_A, doctor_id="D1", date="2024-01-15")) == 3


def test_clear(store: InMemoryAppointmentStore):
    """Test removing every record."""
    store.insert(_appointment())
    store.insert(_appointment(tenant=TENANT_B))

    store.clear()

    assert store.count() == 0
