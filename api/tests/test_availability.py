"""Availability service: next free dates, occupancy grids, slot summary, exception windows."""

from datetime import date, time

import pytest

from clubbook.core.exceptions import NotFoundError, RepositoryUnavailable, ValidationError
from clubbook.models.reservation import ReservationStatus
from clubbook.services.civil_calendar import Weekday
from clubbook.services.conflicts import OccupancyKind
from clubbook.services.records import BlackoutRecord, ExceptionRecord, OneOffRecord, RecurringRecord

from conftest import (
    ANA,
    BRUNO,
    COURT_A,
    COURT_B,
    FOOTBALL,
    PIT_1,
    VOLLEYBALL,
    BrokenReservations,
    FakeReservations,
    build_service,
)


def monday_series(resource_id=COURT_A.id, shift="18:00", exceptions=(), **kwargs):
    kwargs.setdefault("effective_start", date(2024, 1, 1))
    return RecurringRecord(
        id=7,
        resource_id=resource_id,
        weekday=Weekday.MONDAY,
        shift_key=shift,
        owner=ANA,
        exceptions=tuple(ExceptionRecord(day=d, reason="holiday", id=i) for i, d in enumerate(exceptions, 1)),
        **kwargs,
    )


def one_off(day, shift="18:00", resource_id=COURT_A.id, id=50, status=ReservationStatus.CONFIRMED):
    return OneOffRecord(id=id, resource_id=resource_id, day=day, shift_key=shift, status=status, owner=BRUNO)


# ---------------------------------------------------------------------------
# Next available dates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_standing_night_booking_blocks_every_monday(make_service):
    service = make_service(series=[monday_series(resource_id=PIT_1.id, shift="NIGHT")])

    result = await service.next_available_dates(PIT_1.id, "MONDAY", "NIGHT")

    assert result.available_dates == []
    assert result.last_conflict_date is None


@pytest.mark.asyncio
async def test_exception_opens_a_single_monday(make_service):
    series = monday_series(resource_id=PIT_1.id, shift="NIGHT", exceptions=[date(2024, 3, 11)])
    service = make_service(series=[series])

    result = await service.next_available_dates(PIT_1.id, "MONDAY", "NIGHT")

    assert result.available_dates == ["2024-03-11"]
    assert result.last_conflict_date is None


@pytest.mark.asyncio
async def test_exception_opens_a_single_monday_on_court_evening_hour(make_service):
    service = make_service(series=[monday_series(exceptions=[date(2024, 3, 11)])])

    result = await service.next_available_dates(COURT_A.id, "monday", "18:00")

    assert result.available_dates == ["2024-03-11"]


@pytest.mark.asyncio
async def test_empty_pit_returns_capped_sundays(make_service):
    service = make_service()

    result = await service.next_available_dates(PIT_1.id, "SUNDAY", "DAY")

    # 2024-03-01 is a Friday; first Sunday on/after is 2024-03-03
    assert result.available_dates == [
        "2024-03-03",
        "2024-03-10",
        "2024-03-17",
        "2024-03-24",
        "2024-03-31",
        "2024-04-07",
    ]
    assert result.last_conflict_date is None


@pytest.mark.asyncio
async def test_horizon_smaller_than_cap(make_service):
    service = make_service()
    result = await service.next_available_dates(PIT_1.id, "SUNDAY", "DAY", horizon=3)
    assert result.available_dates == ["2024-03-03", "2024-03-10", "2024-03-17"]


@pytest.mark.asyncio
async def test_today_counts_as_candidate(make_service):
    # 2024-03-01 is itself a Friday
    service = make_service()
    result = await service.next_available_dates(COURT_A.id, "FRIDAY", "09:00", cap=1)
    assert result.available_dates == ["2024-03-01"]


@pytest.mark.asyncio
async def test_last_conflict_is_latest_one_off(make_service):
    service = make_service(one_offs=[one_off(date(2024, 3, 18), id=1), one_off(date(2024, 4, 1), id=2)])

    result = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00")

    assert result.last_conflict_date == "2024-04-01"
    assert result.available_dates == [
        "2024-03-04",
        "2024-03-11",
        "2024-03-25",
        "2024-04-08",
        "2024-04-15",
        "2024-04-22",
    ]


@pytest.mark.asyncio
async def test_cancelled_one_off_is_not_a_conflict(make_service):
    service = make_service(one_offs=[one_off(date(2024, 3, 4), status=ReservationStatus.CANCELLED)])

    result = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00", cap=1)

    assert result.available_dates == ["2024-03-04"]
    assert result.last_conflict_date is None


@pytest.mark.asyncio
async def test_blackouts_do_not_filter_next_dates(make_service):
    blackout = BlackoutRecord(
        id=1, day=date(2024, 3, 4), starts_at=time(0, 0), resource_ids=frozenset({COURT_A.id})
    )
    service = make_service(blackouts=[blackout])

    result = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00", cap=1)

    assert result.available_dates == ["2024-03-04"]


@pytest.mark.asyncio
async def test_series_starting_later_leaves_earlier_mondays_free(make_service):
    service = make_service(series=[monday_series(effective_start=date(2024, 3, 18))])

    result = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00")

    assert result.available_dates == ["2024-03-04", "2024-03-11"]


@pytest.mark.asyncio
async def test_next_dates_is_repeatable(make_service):
    service = make_service(series=[monday_series(exceptions=[date(2024, 3, 11)])])
    first = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00")
    second = await service.next_available_dates(COURT_A.id, "MONDAY", "18:00")
    assert first == second


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"resource_id": None, "weekday": "MONDAY", "shift": "18:00"}, "resource_id"),
        ({"resource_id": 999, "weekday": "MOONDAY", "shift": "18:00"}, "weekday"),
        ({"resource_id": 999, "weekday": "MONDAY", "shift": "EVENING"}, "shift"),
        ({"resource_id": 999, "weekday": "MONDAY", "shift": "18:00", "horizon": 0}, "horizon"),
        ({"resource_id": 999, "weekday": "MONDAY", "shift": "18:00", "horizon": 53}, "horizon"),
        ({"resource_id": 999, "weekday": "MONDAY", "shift": "18:00", "cap": 0}, "cap"),
    ],
)
async def test_invalid_input_fails_before_any_lookup(kwargs, field):
    reservations = FakeReservations()
    service = build_service(reservations=reservations)

    with pytest.raises(ValidationError) as excinfo:
        await service.next_available_dates(**kwargs)

    assert excinfo.value.field == field
    assert reservations.calls == []


@pytest.mark.asyncio
async def test_unknown_resource(make_service):
    with pytest.raises(NotFoundError):
        await make_service().next_available_dates(999, "MONDAY", "18:00")


@pytest.mark.asyncio
async def test_shift_must_match_resource_kind(make_service):
    with pytest.raises(ValidationError):
        await make_service().next_available_dates(COURT_A.id, "MONDAY", "NIGHT")


# ---------------------------------------------------------------------------
# Occupancy grid
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_grid_by_date(make_service):
    monday = date(2024, 3, 4)
    service = make_service(
        series=[monday_series(exceptions=[date(2024, 3, 11)])],
        one_offs=[one_off(monday, shift="19:00")],
        blackouts=[
            BlackoutRecord(
                id=3,
                day=monday,
                starts_at=time(20, 0),
                reason="electrical repair",
                resource_ids=frozenset({PIT_1.id}),
            )
        ],
    )

    grid = await service.occupancy_grid(day="2024-03-04", resource_ids=[COURT_A.id, PIT_1.id])

    assert grid.weekday == Weekday.MONDAY
    assert [row.resource.id for row in grid.rows] == [PIT_1.id, COURT_A.id]  # pits sort before courts
    states = grid.as_map()
    assert states[COURT_A.id]["18:00"].kind == OccupancyKind.BLOCKED_RECURRING
    assert states[COURT_A.id]["19:00"].kind == OccupancyKind.BLOCKED_ONE_OFF
    assert states[COURT_A.id]["20:00"].is_free
    assert len(states[COURT_A.id]) == 17
    assert states[PIT_1.id]["DAY"].is_free
    assert states[PIT_1.id]["NIGHT"].kind == OccupancyKind.BLACKED_OUT

    court = next(row for row in grid.rows if row.resource.id == COURT_A.id)
    cell = court.cells["18:00"]
    assert cell.series_meta.owner == ANA
    assert cell.series_meta.effective_start == "2024-01-01"
    assert cell.series_meta.next_occurrence == "2024-03-04"
    assert [e.date_key for e in cell.series_meta.exceptions] == ["2024-03-11"]
    assert court.cells["19:00"].series_meta is None


@pytest.mark.asyncio
async def test_grid_on_excepted_date_is_free(make_service):
    service = make_service(series=[monday_series(exceptions=[date(2024, 3, 11)])])

    grid = await service.occupancy_grid(day=date(2024, 3, 11), resource_ids=[COURT_A.id], shifts=["18:00"])

    assert grid.rows[0].cells["18:00"].occupancy.is_free


@pytest.mark.asyncio
async def test_grid_by_weekday_shows_standing_bookings_only(make_service):
    service = make_service(
        series=[monday_series(effective_start=date(2024, 6, 3))],
        one_offs=[one_off(date(2024, 3, 4), shift="19:00")],
    )

    grid = await service.occupancy_grid(weekday="MONDAY", resource_ids=[COURT_A.id], shifts=["18:00", "19:00"])

    assert grid.day is None
    cells = grid.rows[0].cells
    assert cells["18:00"].occupancy.kind == OccupancyKind.BLOCKED_RECURRING
    assert cells["18:00"].series_meta.next_occurrence == "2024-06-03"
    assert cells["19:00"].occupancy.is_free


@pytest.mark.asyncio
async def test_grid_filters(make_service):
    service = make_service()

    pits = await service.occupancy_grid(day="2024-03-04", kind="bbq_pit")
    volleyball = await service.occupancy_grid(day="2024-03-04", activity_id=VOLLEYBALL)
    everything = await service.occupancy_grid(day="2024-03-04")

    assert [r.resource.id for r in pits.rows] == [PIT_1.id]
    assert [r.resource.id for r in volleyball.rows] == [COURT_B.id]
    assert [r.resource.id for r in everything.rows] == [PIT_1.id, COURT_A.id, COURT_B.id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs",
    [
        {},
        {"day": "2024-03-04", "weekday": "MONDAY"},
        {"day": "not-a-date"},
        {"weekday": "MONDAY", "kind": "tennis_table"},
        {"day": "2024-03-04", "resource_ids": [COURT_A.id], "shifts": ["DAY"]},
    ],
)
async def test_grid_validation(make_service, kwargs):
    with pytest.raises(ValidationError):
        await make_service().occupancy_grid(**kwargs)


@pytest.mark.asyncio
async def test_grid_unknown_resource(make_service):
    with pytest.raises(NotFoundError) as excinfo:
        await make_service().occupancy_grid(day="2024-03-04", resource_ids=[COURT_A.id, 404])
    assert excinfo.value.details == {"resource_ids": [404]}


@pytest.mark.asyncio
async def test_grid_ids_narrowed_by_kind_are_not_missing(make_service):
    grid = await make_service().occupancy_grid(day="2024-03-04", resource_ids=[COURT_A.id, PIT_1.id], kind="court")
    assert [r.resource.id for r in grid.rows] == [COURT_A.id]

    grid = await make_service().occupancy_grid(
        day="2024-03-04", resource_ids=[COURT_A.id, COURT_B.id], activity_id=VOLLEYBALL
    )
    assert [r.resource.id for r in grid.rows] == [COURT_B.id]


@pytest.mark.asyncio
async def test_grid_court_hour_over_courts_and_pits(make_service):
    monday = date(2024, 3, 4)
    service = make_service(series=[monday_series()], one_offs=[one_off(monday, shift="DAY", resource_id=PIT_1.id)])

    grid = await service.occupancy_grid(day=monday, shifts=["18:00"])

    states = grid.as_map()
    assert states[COURT_A.id]["18:00"].kind == OccupancyKind.BLOCKED_RECURRING
    assert states[COURT_B.id]["18:00"].is_free
    assert list(states[COURT_A.id]) == ["18:00"]
    # Pits have no hourly shifts and report both periods
    assert list(states[PIT_1.id]) == ["DAY", "NIGHT"]
    assert states[PIT_1.id]["DAY"].kind == OccupancyKind.BLOCKED_ONE_OFF


@pytest.mark.asyncio
async def test_grid_mixed_shift_list_applies_each_key_to_its_kind(make_service):
    grid = await make_service().occupancy_grid(day="2024-03-04", shifts=["18:00", "night"])

    states = grid.as_map()
    assert list(states[COURT_A.id]) == ["18:00"]
    assert list(states[PIT_1.id]) == ["NIGHT"]


@pytest.mark.asyncio
async def test_repository_failure_fails_whole_grid(make_service):
    service = make_service(reservations=BrokenReservations())
    with pytest.raises(RepositoryUnavailable):
        await service.occupancy_grid(day="2024-03-04")


# ---------------------------------------------------------------------------
# Day slot summary
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_slot_summary_needs_one_free_court(make_service):
    monday = date(2024, 3, 4)
    service = make_service(
        series=[monday_series()],
        one_offs=[
            one_off(monday, shift="19:00", resource_id=COURT_A.id, id=1),
            one_off(monday, shift="20:00", resource_id=COURT_A.id, id=2),
        ],
        blackouts=[
            BlackoutRecord(
                id=4, day=monday, starts_at=time(19, 0), ends_at=time(20, 0), resource_ids=frozenset({COURT_B.id})
            )
        ],
    )

    summary = await service.day_slot_summary("2024-03-04", FOOTBALL)

    assert summary.weekday == Weekday.MONDAY
    assert len(summary.hours) == 17
    assert summary.available["18:00"] is True  # Court B is free
    assert summary.available["19:00"] is False  # A booked, B blacked out
    assert summary.available["20:00"] is True


@pytest.mark.asyncio
async def test_slot_summary_for_activity_without_courts(make_service):
    summary = await make_service().day_slot_summary(date(2024, 3, 4), 99)
    assert not any(summary.available.values())


@pytest.mark.asyncio
async def test_slot_summary_validation(make_service):
    service = make_service()
    with pytest.raises(ValidationError):
        await service.day_slot_summary(None, FOOTBALL)
    with pytest.raises(ValidationError):
        await service.day_slot_summary("2024-03-04", None)


# ---------------------------------------------------------------------------
# Exception-eligible dates
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_exception_window_excludes_excepted_dates(make_service):
    service = make_service(series=[monday_series(exceptions=[date(2024, 3, 11)])])

    window = await service.exception_eligible_dates(7)

    assert window.window_start == date(2024, 3, 1)
    assert window.window_end == date(2024, 4, 1)
    assert window.eligible_dates == ["2024-03-04", "2024-03-18", "2024-03-25"]
    assert [e.date_key for e in window.excepted] == ["2024-03-11"]


@pytest.mark.asyncio
async def test_exception_window_starts_at_effective_start(make_service):
    service = make_service(series=[monday_series(effective_start=date(2024, 4, 8))])

    window = await service.exception_eligible_dates(7, months=1)

    assert window.window_start == date(2024, 4, 8)
    assert window.eligible_dates == ["2024-04-08", "2024-04-15", "2024-04-22", "2024-04-29", "2024-05-06"]


@pytest.mark.asyncio
@pytest.mark.parametrize("months", [0, 7, None])
async def test_exception_window_out_of_range_months_fall_back_to_one(make_service, months):
    service = make_service(series=[monday_series()])
    window = await service.exception_eligible_dates(7, months=months)
    assert window.window_end == date(2024, 4, 1)


@pytest.mark.asyncio
async def test_exception_window_errors(make_service):
    with pytest.raises(NotFoundError):
        await make_service().exception_eligible_dates(404)

    cancelled = make_service(series=[monday_series(status=ReservationStatus.CANCELLED)])
    with pytest.raises(ValidationError):
        await cancelled.exception_eligible_dates(7)
