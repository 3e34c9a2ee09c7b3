"""All models imported here for Alembic autogenerate discovery."""

from clubbook.models.base import Base
from clubbook.models.blackout import Blackout, BlackoutReason
from clubbook.models.member import User
from clubbook.models.reservation import (
    OneOffReservation,
    RecurringException,
    RecurringReservation,
    ReservationStatus,
)
from clubbook.models.resource import Activity, Resource, ResourceKind

__all__ = [
    "Base",
    "User",
    "Activity",
    "Resource",
    "ResourceKind",
    "OneOffReservation",
    "RecurringReservation",
    "RecurringException",
    "ReservationStatus",
    "Blackout",
    "BlackoutReason",
]
