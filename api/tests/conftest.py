"""Shared test fixtures.

The engine is exercised against in-memory repositories that honour the same
contracts as the SQL ones (status filtering, weekday/shift narrowing). The
SQL repositories themselves are covered in test_repositories.py against an
in-memory SQLite database.
"""

from datetime import date

import pytest

from clubbook.core.exceptions import RepositoryUnavailable
from clubbook.models.reservation import INACTIVE_STATUSES
from clubbook.models.resource import ResourceKind
from clubbook.services.availability import AvailabilityService, EngineConfig
from clubbook.services.civil_calendar import to_date_key
from clubbook.services.records import Owner, ResourceInfo

FOOTBALL = 1
VOLLEYBALL = 2

COURT_A = ResourceInfo(id=1, name="Court A", number=1, kind=ResourceKind.COURT, activity_ids=frozenset({FOOTBALL}))
COURT_B = ResourceInfo(
    id=2, name="Court B", number=2, kind=ResourceKind.COURT, activity_ids=frozenset({FOOTBALL, VOLLEYBALL})
)
PIT_1 = ResourceInfo(id=10, name="Pit 1", number=1, kind=ResourceKind.BBQ_PIT)

ANA = Owner(user_id=100, name="Ana")
BRUNO = Owner(user_id=101, name="Bruno")


class FakeResources:
    def __init__(self, resources):
        self.resources = list(resources)

    async def get(self, resource_id):
        return next((r for r in self.resources if r.id == resource_id), None)

    async def find(self, ids=None, kind=None, activity_id=None):
        found = [
            r
            for r in self.resources
            if (not ids or r.id in ids)
            and (kind is None or r.kind == kind)
            and (activity_id is None or activity_id in r.activity_ids)
        ]
        return sorted(found, key=lambda r: (r.kind.value, r.number, r.id))


class FakeReservations:
    def __init__(self, one_offs=(), series=()):
        self.one_offs = list(one_offs)
        self.all_series = list(series)
        self.calls = []

    async def one_offs_for(self, resource_ids, days, shift_key=None):
        self.calls.append("one_offs_for")
        keys = {to_date_key(d) for d in days}
        return [
            r
            for r in self.one_offs
            if r.resource_id in resource_ids
            and r.date_key in keys
            and (shift_key is None or r.shift_key == shift_key)
            and r.status not in INACTIVE_STATUSES
        ]

    async def one_off_on(self, resource_id, days, shift_key=None):
        return await self.one_offs_for([resource_id], days, shift_key)

    async def recurring_on_weekday(self, resource_ids, weekday, shift_key=None):
        self.calls.append("recurring_on_weekday")
        return [
            s
            for s in self.all_series
            if s.resource_id in resource_ids
            and s.weekday == weekday
            and (shift_key is None or s.shift_key == shift_key)
            and s.status not in INACTIVE_STATUSES
        ]

    async def recurring_for(self, resource_id, weekday, shift_key=None):
        return await self.recurring_on_weekday([resource_id], weekday, shift_key)

    async def series(self, series_id):
        return next((s for s in self.all_series if s.id == series_id), None)


class FakeBlackouts:
    def __init__(self, blackouts=()):
        self.blackouts = list(blackouts)

    async def blackouts_for(self, resource_ids, days):
        keys = {to_date_key(d) for d in days}
        return [b for b in self.blackouts if b.date_key in keys and set(resource_ids) & b.resource_ids]

    async def blackouts_on(self, resource_id, days):
        return await self.blackouts_for([resource_id], days)


class BrokenReservations(FakeReservations):
    """Fails every read the way the SQL repository does when the database is down."""

    async def one_offs_for(self, resource_ids, days, shift_key=None):
        raise RepositoryUnavailable("The booking database is temporarily unavailable. Try again shortly.")

    async def recurring_on_weekday(self, resource_ids, weekday, shift_key=None):
        raise RepositoryUnavailable("The booking database is temporarily unavailable. Try again shortly.")


def build_service(
    *,
    resources=(COURT_A, COURT_B, PIT_1),
    one_offs=(),
    series=(),
    blackouts=(),
    today=date(2024, 3, 1),
    reservations=None,
    config=None,
) -> AvailabilityService:
    return AvailabilityService(
        resources=FakeResources(resources),
        reservations=reservations or FakeReservations(one_offs, series),
        blackouts=FakeBlackouts(blackouts),
        config=config or EngineConfig(),
        clock=lambda: today,
    )


@pytest.fixture
def make_service():
    return build_service
