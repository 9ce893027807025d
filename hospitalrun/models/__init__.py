"""Domain models."""

from hospitalrun.models.appointments import Appointment

__all__ = [
    "Appointment",
]
