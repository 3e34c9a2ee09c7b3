"""Availability aggregation.

Turns raw reservation, exception and blackout rows into the answers the
booking screens need:

- next free weekly dates for a standing booking (``next_available_dates``),
- a resource x shift occupancy grid for a date or a weekday (``occupancy_grid``),
- per-hour "any court free" summary for a sport (``day_slot_summary``),
- dates on which an occurrence of a series can still be excepted
  (``exception_eligible_dates``).

Every query reads everything it needs before building its result, so a
repository failure fails the whole query: no partial grids.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from clubbook.core.exceptions import NotFoundError, ValidationError
from clubbook.models.resource import ResourceKind
from clubbook.services.civil_calendar import (
    DEFAULT_TIMEZONE,
    Weekday,
    add_months,
    enumerate_weekly_occurrences,
    parse_date_key,
    to_date_key,
    today_local,
)
from clubbook.services.conflicts import ConflictEvaluator, Occupancy, OccupancyKind, evaluate
from clubbook.services.occurrences import (
    first_possible_date,
    log_inert_exceptions,
    next_real_occurrence,
    occurrences_between,
)
from clubbook.services.records import ExceptionRecord, Owner, RecurringRecord, ResourceInfo
from clubbook.services.shifts import (
    Shift,
    ShiftWindows,
    check_shift_syntax,
    default_shifts,
    parse_shift,
)

logger = logging.getLogger(__name__)

MAX_EXCEPTION_MONTHS = 6


@dataclass(frozen=True)
class EngineConfig:
    timezone: str = DEFAULT_TIMEZONE
    horizon_weeks: int = 12
    result_cap: int = 6
    max_horizon_weeks: int = 52
    windows: ShiftWindows = field(default_factory=ShiftWindows)
    grid_first_hour: int = 7
    grid_last_hour: int = 23
    next_occurrence_search_weeks: int = 120

    @classmethod
    def from_settings(cls, settings) -> "EngineConfig":
        return cls(
            timezone=settings.timezone,
            horizon_weeks=settings.horizon_weeks,
            result_cap=settings.result_cap,
            max_horizon_weeks=settings.max_horizon_weeks,
            windows=ShiftWindows.from_settings(settings),
            grid_first_hour=settings.grid_first_hour,
            grid_last_hour=settings.grid_last_hour,
            next_occurrence_search_weeks=settings.next_occurrence_search_weeks,
        )


# ---------------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NextAvailableDates:
    last_conflict_date: str | None
    available_dates: list[str]


@dataclass(frozen=True)
class SeriesMeta:
    """What the UI shows to explain a standing booking."""

    series_id: int
    owner: Owner | None
    effective_start: str | None
    next_occurrence: str | None
    exceptions: tuple[ExceptionRecord, ...]


@dataclass(frozen=True)
class GridCell:
    shift_key: str
    occupancy: Occupancy
    series_meta: SeriesMeta | None = None


@dataclass(frozen=True)
class GridRow:
    resource: ResourceInfo
    cells: dict[str, GridCell]


@dataclass(frozen=True)
class OccupancyGrid:
    day: date | None
    weekday: Weekday
    rows: list[GridRow]

    def as_map(self) -> dict[int, dict[str, Occupancy]]:
        return {row.resource.id: {k: c.occupancy for k, c in row.cells.items()} for row in self.rows}


@dataclass(frozen=True)
class DaySlotSummary:
    day: date
    weekday: Weekday
    hours: list[str]
    available: dict[str, bool]


@dataclass(frozen=True)
class ExceptionWindow:
    series_id: int
    weekday: Weekday
    shift_key: str
    window_start: date
    window_end: date
    eligible_dates: list[str]
    excepted: list[ExceptionRecord]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AvailabilityService:
    """Availability engine. Stateless between calls; repositories are injected."""

    def __init__(
        self,
        resources,
        reservations,
        blackouts,
        config: EngineConfig | None = None,
        clock: Callable[[], date] | None = None,
    ):
        self.resources = resources
        self.reservations = reservations
        self.blackouts = blackouts
        self.config = config or EngineConfig()
        self.clock = clock or (lambda: today_local(self.config.timezone))
        self.evaluator = ConflictEvaluator(reservations, blackouts)

    # -- validation helpers -------------------------------------------------

    def _bounded(self, field_name: str, value: int | None, default: int, maximum: int) -> int:
        if value is None:
            return default
        if value < 1 or value > maximum:
            raise ValidationError(field_name, f"{field_name} must be between 1 and {maximum}")
        return value

    async def _resource(self, resource_id: int) -> ResourceInfo:
        resource = await self.resources.get(resource_id)
        if resource is None:
            raise NotFoundError("Resource not found", details={"resource_id": resource_id})
        return resource

    # -- single slot ---------------------------------------------------------

    async def classify(self, resource_id: int, day: date | str, shift: str) -> Occupancy:
        """Occupancy of one (resource, date, shift) slot, all four rules applied."""
        if not isinstance(day, date):
            day = parse_date_key(day)
        raw_shift = check_shift_syntax(shift)
        resource = await self._resource(resource_id)
        return await self.evaluator.classify(resource, day, parse_shift(resource.kind, raw_shift, self.config.windows))

    # -- (a) next available dates -------------------------------------------

    async def next_available_dates(
        self,
        resource_id: int | None,
        weekday: str | Weekday | None,
        shift: str | None,
        horizon: int | None = None,
        cap: int | None = None,
    ) -> NextAvailableDates:
        """Free upcoming occurrences of weekday/shift on a resource.

        Only one-off and recurring conflicts are filtered out; blackouts are not
        consulted for this query shape. ``last_conflict_date`` is the latest
        candidate date taken by a one-off reservation.
        """
        if resource_id is None:
            raise ValidationError("resource_id", "resource_id is required")
        target = Weekday.parse(weekday)
        raw_shift = check_shift_syntax(shift)
        horizon = self._bounded("horizon", horizon, self.config.horizon_weeks, self.config.max_horizon_weeks)
        cap = self._bounded("cap", cap, self.config.result_cap, self.config.max_horizon_weeks)

        resource = await self._resource(resource_id)
        slot = parse_shift(resource.kind, raw_shift, self.config.windows)

        candidates = enumerate_weekly_occurrences(self.clock(), target, horizon)
        one_offs = await self.reservations.one_off_on(resource.id, candidates, slot.key)
        series = await self.reservations.recurring_for(resource.id, target, slot.key)
        log_inert_exceptions(series)

        last_conflict: date | None = None
        free: list[date] = []
        for day in candidates:
            occupancy = evaluate(resource.id, day, slot, one_offs=one_offs, series=series, check_blackouts=False)
            if occupancy.kind == OccupancyKind.BLOCKED_ONE_OFF:
                if last_conflict is None or day > last_conflict:
                    last_conflict = day
            elif occupancy.is_free:
                free.append(day)

        logger.info(
            "next_available_dates resource=%s weekday=%s shift=%s candidates=%d free=%d",
            resource.id,
            target.value,
            slot.key,
            len(candidates),
            len(free),
        )
        return NextAvailableDates(
            last_conflict_date=to_date_key(last_conflict) if last_conflict else None,
            available_dates=[to_date_key(d) for d in free[:cap]],
        )

    # -- (b) occupancy grid --------------------------------------------------

    async def occupancy_grid(
        self,
        *,
        day: date | str | None = None,
        weekday: str | Weekday | None = None,
        resource_ids: Sequence[int] | None = None,
        kind: str | ResourceKind | None = None,
        activity_id: int | None = None,
        shifts: Sequence[str] | None = None,
    ) -> OccupancyGrid:
        """Resource x shift occupancy.

        By date: all four rules, per cell. By weekday: the standing-booking view,
        where only active recurring series occupy cells.
        """
        if (day is None) == (weekday is None):
            raise ValidationError("date", "Provide either date or weekday")
        if day is not None and not isinstance(day, date):
            day = parse_date_key(day)
        target = Weekday.of(day) if day else Weekday.parse(weekday)
        resource_kind = self._parse_kind(kind)
        raw_shifts = [check_shift_syntax(s) for s in shifts] if shifts else None

        if resource_ids:
            # Existence is checked before the kind/activity filters narrow the set
            resources = await self.resources.find(ids=resource_ids)
            missing = sorted(set(resource_ids) - {r.id for r in resources})
            if missing:
                raise NotFoundError("Resource not found", details={"resource_ids": missing})
            resources = [
                r
                for r in resources
                if (resource_kind is None or r.kind == resource_kind)
                and (activity_id is None or activity_id in r.activity_ids)
            ]
        else:
            resources = await self.resources.find(kind=resource_kind, activity_id=activity_id)

        if raw_shifts:
            kinds = {r.kind for r in resources}
            unmatched = [raw for raw in raw_shifts if not any(self._shift_for(k, raw) for k in kinds)]
            if kinds and unmatched:
                raise ValidationError("shift", f"Shift '{unmatched[0]}' does not apply to any selected resource")
        shifts_by_resource = {r.id: self._grid_shifts(r, raw_shifts) for r in resources}

        ids = [r.id for r in resources]
        series = await self.reservations.recurring_on_weekday(ids, target)
        log_inert_exceptions(series)
        if day:
            one_offs = await self.reservations.one_offs_for(ids, [day])
            blackouts = await self.blackouts.blackouts_for(ids, [day])
        else:
            one_offs, blackouts = [], []

        today = self.clock()
        rows = []
        for resource in resources:
            cells = {}
            for slot in shifts_by_resource[resource.id]:
                if day:
                    occupancy = evaluate(
                        resource.id, day, slot, blackouts=blackouts, one_offs=one_offs, series=series
                    )
                else:
                    occupancy = self._standing(resource.id, slot, series)
                meta = self._series_meta(occupancy.series, today) if occupancy.series else None
                cells[slot.key] = GridCell(shift_key=slot.key, occupancy=occupancy, series_meta=meta)
            rows.append(GridRow(resource=resource, cells=cells))

        logger.info(
            "occupancy_grid date=%s weekday=%s resources=%d",
            to_date_key(day) if day else None,
            target.value,
            len(rows),
        )
        return OccupancyGrid(day=day, weekday=target, rows=rows)

    def _parse_kind(self, kind: str | ResourceKind | None) -> ResourceKind | None:
        if kind is None or isinstance(kind, ResourceKind):
            return kind
        try:
            return ResourceKind(kind.strip().lower())
        except ValueError:
            raise ValidationError(
                "kind", f"Invalid kind '{kind}'. Choose from: {', '.join(k.value for k in ResourceKind)}."
            ) from None

    def _shift_for(self, kind: ResourceKind, raw: str) -> Shift | None:
        try:
            return parse_shift(kind, raw, self.config.windows)
        except ValidationError:
            return None

    def _grid_shifts(self, resource: ResourceInfo, raw_shifts: list[str] | None) -> list[Shift]:
        """Requested shifts that exist for the resource kind.

        A resource none of the requested keys apply to (a pit asked for "18:00")
        gets its kind's full shift set instead.
        """
        requested = [self._shift_for(resource.kind, raw) for raw in raw_shifts] if raw_shifts else []
        requested = [s for s in requested if s is not None]
        if requested:
            return requested
        return default_shifts(
            resource.kind, self.config.windows, self.config.grid_first_hour, self.config.grid_last_hour
        )

    def _standing(self, resource_id: int, slot: Shift, series: Sequence[RecurringRecord]) -> Occupancy:
        for s in series:
            if s.resource_id == resource_id and s.shift_key == slot.key and s.blocks:
                return Occupancy(OccupancyKind.BLOCKED_RECURRING, series=s)
        return Occupancy(OccupancyKind.FREE)

    def _series_meta(self, series: RecurringRecord, today: date) -> SeriesMeta:
        upcoming = next_real_occurrence(series, today, self.config.next_occurrence_search_weeks)
        return SeriesMeta(
            series_id=series.id,
            owner=series.owner,
            effective_start=to_date_key(series.effective_start) if series.effective_start else None,
            next_occurrence=to_date_key(upcoming) if upcoming else None,
            exceptions=series.exceptions,
        )

    # -- per-hour summary for a sport ---------------------------------------

    async def day_slot_summary(self, day: date | str, activity_id: int | None) -> DaySlotSummary:
        """For each grid hour, whether at least one court of the activity is free."""
        if not isinstance(day, date):
            day = parse_date_key(day)
        if activity_id is None:
            raise ValidationError("activity_id", "activity_id is required")
        target = Weekday.of(day)
        hours = default_shifts(
            ResourceKind.COURT, self.config.windows, self.config.grid_first_hour, self.config.grid_last_hour
        )

        courts = await self.resources.find(kind=ResourceKind.COURT, activity_id=activity_id)
        ids = [c.id for c in courts]
        one_offs = await self.reservations.one_offs_for(ids, [day])
        series = await self.reservations.recurring_on_weekday(ids, target)
        blackouts = await self.blackouts.blackouts_for(ids, [day])

        available = {
            slot.key: any(
                evaluate(cid, day, slot, blackouts=blackouts, one_offs=one_offs, series=series).is_free for cid in ids
            )
            for slot in hours
        }
        return DaySlotSummary(day=day, weekday=target, hours=[h.key for h in hours], available=available)

    # -- exception-eligible dates -------------------------------------------

    async def exception_eligible_dates(self, series_id: int, months: int | None = 1) -> ExceptionWindow:
        """Occurrences of a series, from max(today, effective start) over ``months``, not yet excepted.

        ``months`` outside 1..6 falls back to 1.
        """
        if months is None or not 1 <= months <= MAX_EXCEPTION_MONTHS:
            months = 1

        series = await self.reservations.series(series_id)
        if series is None:
            raise NotFoundError("Recurring reservation not found", details={"series_id": series_id})
        if not series.blocks:
            raise ValidationError("series_id", "Recurring reservation is not active")

        start = first_possible_date(series, self.clock())
        end = add_months(start, months)
        eligible = [
            to_date_key(d) for d in occurrences_between(series, start, end) if to_date_key(d) not in series.exception_keys
        ]
        excepted = [e for e in series.exceptions if start <= e.day < end]
        return ExceptionWindow(
            series_id=series.id,
            weekday=series.weekday,
            shift_key=series.shift_key,
            window_start=start,
            window_end=end,
            eligible_dates=eligible,
            excepted=excepted,
        )
