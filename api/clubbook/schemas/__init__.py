"""Pydantic schemas for API serialisation."""

from datetime import date

from pydantic import BaseModel, ConfigDict

# --- Next available dates ---


class NextAvailableDatesOut(BaseModel):
    last_conflict_date: str | None  # "YYYY-MM-DD"
    available_dates: list[str]


# --- Occupancy grid ---


class OwnerOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    name: str


class ExceptionOut(BaseModel):
    id: int | None = None
    date: str  # "YYYY-MM-DD"
    reason: str | None = None


class SeriesMetaOut(BaseModel):
    series_id: int
    effective_start: str | None
    next_occurrence: str | None
    exceptions: list[ExceptionOut]


class BlackoutOut(BaseModel):
    id: int
    starts_at: str  # "HH:MM"
    ends_at: str | None  # None = end of day
    reason: str | None


class GridCellOut(BaseModel):
    state: str  # free | blocked_one_off | blocked_recurring | blacked_out
    available: bool
    reservation_id: int | None = None
    owner: OwnerOut | None = None
    blackout: BlackoutOut | None = None
    series: SeriesMetaOut | None = None


class GridResourceOut(BaseModel):
    resource_id: int
    name: str
    number: int
    kind: str
    cells: dict[str, GridCellOut]


class OccupancyGridOut(BaseModel):
    date: date | None
    weekday: str
    resources: list[GridResourceOut]


# --- Day slot summary ---


class DaySlotsOut(BaseModel):
    date: date
    weekday: str
    hours: list[str]
    available: dict[str, bool]


# --- Recurring exceptions ---


class ExceptionDatesOut(BaseModel):
    series_id: int
    weekday: str
    shift: str
    window_start: date
    window_end: date
    eligible_dates: list[str]
    excepted: list[ExceptionOut]
