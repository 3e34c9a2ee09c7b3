"""Availability routes: next free weekly dates, occupancy grids, slot summary,
and exception-eligible dates of a recurring booking.

All routes are read-only; domain errors are rendered by the handler in main.
"""

from fastapi import APIRouter, Depends, Query

from clubbook.core.dependencies import get_availability
from clubbook.schemas import (
    BlackoutOut,
    DaySlotsOut,
    ExceptionDatesOut,
    ExceptionOut,
    GridCellOut,
    GridResourceOut,
    NextAvailableDatesOut,
    OccupancyGridOut,
    OwnerOut,
    SeriesMetaOut,
)
from clubbook.services.availability import AvailabilityService, GridCell, SeriesMeta

router = APIRouter(tags=["availability"])


def _exceptions_out(exceptions) -> list[ExceptionOut]:
    return [ExceptionOut(id=e.id, date=e.date_key, reason=e.reason) for e in exceptions]


def _series_out(meta: SeriesMeta) -> SeriesMetaOut:
    return SeriesMetaOut(
        series_id=meta.series_id,
        effective_start=meta.effective_start,
        next_occurrence=meta.next_occurrence,
        exceptions=_exceptions_out(meta.exceptions),
    )


def _cell_out(cell: GridCell) -> GridCellOut:
    occupancy = cell.occupancy
    out = GridCellOut(state=occupancy.kind.value, available=occupancy.is_free)

    if occupancy.blackout:
        b = occupancy.blackout
        out.blackout = BlackoutOut(
            id=b.id,
            starts_at=b.starts_at.strftime("%H:%M"),
            ends_at=b.ends_at.strftime("%H:%M") if b.ends_at else None,
            reason=b.reason,
        )
    reservation = occupancy.one_off or occupancy.series
    if reservation:
        out.reservation_id = reservation.id
    if occupancy.owner:
        out.owner = OwnerOut.model_validate(occupancy.owner)
    if cell.series_meta:
        out.series = _series_out(cell.series_meta)
    return out


@router.get("/availability/next-dates", response_model=NextAvailableDatesOut)
async def next_available_dates(
    resource_id: int | None = Query(None),
    weekday: str | None = Query(None, description="MONDAY..SUNDAY"),
    shift: str | None = Query(None, description="HH:MM for courts, DAY or NIGHT for barbecue pits"),
    horizon: int | None = Query(None, description="Weekly occurrences to examine"),
    cap: int | None = Query(None, description="Maximum dates returned"),
    availability: AvailabilityService = Depends(get_availability),
):
    """Next free occurrences of a weekday/shift, for setting up a standing booking."""
    result = await availability.next_available_dates(resource_id, weekday, shift, horizon=horizon, cap=cap)
    return NextAvailableDatesOut(
        last_conflict_date=result.last_conflict_date,
        available_dates=result.available_dates,
    )


@router.get("/availability/grid", response_model=OccupancyGridOut)
async def occupancy_grid(
    query_date: str | None = Query(None, alias="date", description="Date in YYYY-MM-DD format"),
    weekday: str | None = Query(None, description="MONDAY..SUNDAY, for the standing-booking view"),
    resource_id: list[int] | None = Query(None),
    kind: str | None = Query(None, description="court or bbq_pit"),
    activity_id: int | None = Query(None),
    shift: list[str] | None = Query(None),
    availability: AvailabilityService = Depends(get_availability),
):
    """Occupancy of every selected resource and shift, by date or by weekday."""
    grid = await availability.occupancy_grid(
        day=query_date,
        weekday=weekday,
        resource_ids=resource_id,
        kind=kind,
        activity_id=activity_id,
        shifts=shift,
    )
    return OccupancyGridOut(
        date=grid.day,
        weekday=grid.weekday.value,
        resources=[
            GridResourceOut(
                resource_id=row.resource.id,
                name=row.resource.name,
                number=row.resource.number,
                kind=row.resource.kind.value,
                cells={key: _cell_out(cell) for key, cell in row.cells.items()},
            )
            for row in grid.rows
        ],
    )


@router.get("/availability/slots", response_model=DaySlotsOut)
async def day_slots(
    query_date: str | None = Query(None, alias="date", description="Date in YYYY-MM-DD format"),
    activity_id: int | None = Query(None),
    availability: AvailabilityService = Depends(get_availability),
):
    """For each hour of the day, whether any court of the sport is free."""
    summary = await availability.day_slot_summary(query_date, activity_id)
    return DaySlotsOut(
        date=summary.day,
        weekday=summary.weekday.value,
        hours=summary.hours,
        available=summary.available,
    )


@router.get("/recurring/{series_id}/exception-dates", response_model=ExceptionDatesOut)
async def exception_dates(
    series_id: int,
    months: int = Query(1, description="Window length in months (1-6)"),
    availability: AvailabilityService = Depends(get_availability),
):
    """Upcoming occurrences of a standing booking that can still be cancelled one-off."""
    window = await availability.exception_eligible_dates(series_id, months)
    return ExceptionDatesOut(
        series_id=window.series_id,
        weekday=window.weekday.value,
        shift=window.shift_key,
        window_start=window.window_start,
        window_end=window.window_end,
        eligible_dates=window.eligible_dates,
        excepted=_exceptions_out(window.excepted),
    )
