"""Conflict evaluation for a single (resource, date, shift) slot.

Decision order, first match wins:

1. Blackout whose window intersects the shift   -> BLACKED_OUT
2. Blocking one-off reservation on the slot     -> BLOCKED_ONE_OFF
3. Recurring series occupying the date (running on that weekday, started,
   and the date not excepted)                   -> BLOCKED_RECURRING
4. Otherwise                                    -> FREE

``evaluate`` is pure and works on rows already loaded; ``ConflictEvaluator``
loads the rows for one slot through the repositories and delegates to it.
"""

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from clubbook.services.civil_calendar import Weekday, to_date_key
from clubbook.services.occurrences import log_inert_exceptions, occupies
from clubbook.services.records import BlackoutRecord, OneOffRecord, Owner, RecurringRecord, ResourceInfo
from clubbook.services.shifts import Shift, overlaps


class OccupancyKind(enum.StrEnum):
    FREE = "free"
    BLOCKED_ONE_OFF = "blocked_one_off"
    BLOCKED_RECURRING = "blocked_recurring"
    BLACKED_OUT = "blacked_out"


@dataclass(frozen=True)
class Occupancy:
    kind: OccupancyKind
    one_off: OneOffRecord | None = None
    series: RecurringRecord | None = None
    blackout: BlackoutRecord | None = None

    @property
    def is_free(self) -> bool:
        return self.kind == OccupancyKind.FREE

    @property
    def owner(self) -> Owner | None:
        if self.one_off:
            return self.one_off.owner
        if self.series:
            return self.series.owner
        return None


FREE = Occupancy(OccupancyKind.FREE)


def find_blackout(
    resource_id: int, day: date, shift: Shift, blackouts: Iterable[BlackoutRecord]
) -> BlackoutRecord | None:
    key = to_date_key(day)
    for blackout in blackouts:
        if blackout.date_key != key:
            continue
        if resource_id not in blackout.resource_ids:
            continue
        if overlaps(shift, blackout.start_minute, blackout.end_minute):
            return blackout
    return None


def find_one_off(resource_id: int, day: date, shift: Shift, one_offs: Iterable[OneOffRecord]) -> OneOffRecord | None:
    key = to_date_key(day)
    for reservation in one_offs:
        if (
            reservation.resource_id == resource_id
            and reservation.date_key == key
            and reservation.shift_key == shift.key
            and reservation.blocks
        ):
            return reservation
    return None


def find_recurring(
    resource_id: int, day: date, shift: Shift, series: Iterable[RecurringRecord]
) -> RecurringRecord | None:
    for s in series:
        if s.resource_id == resource_id and s.shift_key == shift.key and occupies(s, day):
            return s
    return None


def evaluate(
    resource_id: int,
    day: date,
    shift: Shift,
    *,
    blackouts: Iterable[BlackoutRecord] = (),
    one_offs: Iterable[OneOffRecord] = (),
    series: Iterable[RecurringRecord] = (),
    check_blackouts: bool = True,
) -> Occupancy:
    """Classify one slot from pre-loaded rows.

    ``check_blackouts=False`` skips rule 1; the next-available-dates query
    evaluates rules 2-3 only.
    """
    if check_blackouts:
        blackout = find_blackout(resource_id, day, shift, blackouts)
        if blackout:
            return Occupancy(OccupancyKind.BLACKED_OUT, blackout=blackout)

    one_off = find_one_off(resource_id, day, shift, one_offs)
    if one_off:
        return Occupancy(OccupancyKind.BLOCKED_ONE_OFF, one_off=one_off)

    running = find_recurring(resource_id, day, shift, series)
    if running:
        return Occupancy(OccupancyKind.BLOCKED_RECURRING, series=running)

    return FREE


class ConflictEvaluator:
    """Classify a single slot, reading only the rows that can affect it."""

    def __init__(self, reservations, blackouts):
        self.reservations = reservations
        self.blackouts = blackouts

    async def classify(self, resource: ResourceInfo, day: date, shift: Shift) -> Occupancy:
        blackouts = await self.blackouts.blackouts_on(resource.id, [day])
        one_offs = await self.reservations.one_off_on(resource.id, [day], shift.key)
        series = await self.reservations.recurring_for(resource.id, Weekday.of(day), shift.key)
        log_inert_exceptions(series)
        return evaluate(resource.id, day, shift, blackouts=blackouts, one_offs=one_offs, series=series)
