"""Immutable rows handed from the repositories to the engine.

Repositories map ORM objects to these records so the engine stays free of
sessions and lazy loading, and test doubles can build them directly.
"""

from dataclasses import dataclass, field
from datetime import date, time

from clubbook.models.reservation import INACTIVE_STATUSES, ReservationStatus
from clubbook.models.resource import ResourceKind
from clubbook.services.civil_calendar import Weekday, to_date_key
from clubbook.services.shifts import minutes_of


@dataclass(frozen=True)
class Owner:
    user_id: int
    name: str


@dataclass(frozen=True)
class ResourceInfo:
    id: int
    name: str
    number: int
    kind: ResourceKind
    activity_ids: frozenset[int] = frozenset()


@dataclass(frozen=True)
class OneOffRecord:
    id: int
    resource_id: int
    day: date
    shift_key: str
    status: ReservationStatus = ReservationStatus.CONFIRMED
    owner: Owner | None = None

    @property
    def blocks(self) -> bool:
        return self.status not in INACTIVE_STATUSES

    @property
    def date_key(self) -> str:
        return to_date_key(self.day)


@dataclass(frozen=True)
class ExceptionRecord:
    day: date
    reason: str | None = None
    id: int | None = None

    @property
    def date_key(self) -> str:
        return to_date_key(self.day)


@dataclass(frozen=True)
class RecurringRecord:
    id: int
    resource_id: int
    weekday: Weekday
    shift_key: str
    effective_start: date | None = None
    status: ReservationStatus = ReservationStatus.CONFIRMED
    owner: Owner | None = None
    exceptions: tuple[ExceptionRecord, ...] = ()
    exception_keys: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # Indexed once so membership tests stay O(1) for long-lived series
        object.__setattr__(self, "exception_keys", frozenset(e.date_key for e in self.exceptions))

    @property
    def blocks(self) -> bool:
        return self.status not in INACTIVE_STATUSES


@dataclass(frozen=True)
class BlackoutRecord:
    id: int
    day: date
    starts_at: time
    ends_at: time | None = None
    reason: str | None = None
    resource_ids: frozenset[int] = frozenset()

    @property
    def start_minute(self) -> int:
        return minutes_of(self.starts_at)

    @property
    def end_minute(self) -> int:
        return minutes_of(self.ends_at)

    @property
    def date_key(self) -> str:
        return to_date_key(self.day)
