"""Read access to one-off and recurring reservations.

Only conflict-relevant rows are returned by the slot queries: cancelled and
transferred reservations never block and are filtered out in SQL. Recurring
series always come with their exceptions loaded.
"""

from collections.abc import Sequence
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from clubbook.models.reservation import (
    INACTIVE_STATUSES,
    OneOffReservation,
    RecurringReservation,
)
from clubbook.repositories.base import SqlRepository
from clubbook.services.civil_calendar import Weekday
from clubbook.services.records import ExceptionRecord, OneOffRecord, Owner, RecurringRecord


def _owner(user) -> Owner | None:
    return Owner(user_id=user.id, name=user.name) if user else None


def one_off_record(row: OneOffReservation) -> OneOffRecord:
    return OneOffRecord(
        id=row.id,
        resource_id=row.resource_id,
        day=row.reservation_date,
        shift_key=row.shift,
        status=row.status,
        owner=_owner(row.user),
    )


def recurring_record(row: RecurringReservation) -> RecurringRecord:
    return RecurringRecord(
        id=row.id,
        resource_id=row.resource_id,
        weekday=row.weekday,
        shift_key=row.shift,
        effective_start=row.effective_start,
        status=row.status,
        owner=_owner(row.user),
        exceptions=tuple(ExceptionRecord(id=e.id, day=e.exception_date, reason=e.reason) for e in row.exceptions),
    )


class ReservationRepository(SqlRepository):
    async def one_offs_for(
        self, resource_ids: Sequence[int], days: Sequence[date], shift_key: str | None = None
    ) -> list[OneOffRecord]:
        """Blocking one-off reservations on any of ``days`` for the given resources."""
        if not resource_ids or not days:
            return []
        query = (
            select(OneOffReservation)
            .options(selectinload(OneOffReservation.user))
            .where(
                OneOffReservation.resource_id.in_(resource_ids),
                OneOffReservation.reservation_date.in_(list(days)),
                OneOffReservation.status.not_in(list(INACTIVE_STATUSES)),
            )
            .order_by(OneOffReservation.reservation_date, OneOffReservation.shift)
        )
        if shift_key is not None:
            query = query.where(OneOffReservation.shift == shift_key)

        async with self.session() as db:
            result = await db.execute(query)
            return [one_off_record(r) for r in result.scalars().all()]

    async def one_off_on(
        self, resource_id: int, days: Sequence[date], shift_key: str | None = None
    ) -> list[OneOffRecord]:
        return await self.one_offs_for([resource_id], days, shift_key)

    async def recurring_on_weekday(
        self, resource_ids: Sequence[int], weekday: Weekday, shift_key: str | None = None
    ) -> list[RecurringRecord]:
        """Active recurring series on ``weekday``, regardless of effective start."""
        if not resource_ids:
            return []
        query = (
            select(RecurringReservation)
            .options(selectinload(RecurringReservation.user), selectinload(RecurringReservation.exceptions))
            .where(
                RecurringReservation.resource_id.in_(resource_ids),
                RecurringReservation.weekday == weekday,
                RecurringReservation.status.not_in(list(INACTIVE_STATUSES)),
            )
            .order_by(RecurringReservation.id)
        )
        if shift_key is not None:
            query = query.where(RecurringReservation.shift == shift_key)

        async with self.session() as db:
            result = await db.execute(query)
            return [recurring_record(r) for r in result.scalars().all()]

    async def recurring_for(
        self, resource_id: int, weekday: Weekday, shift_key: str | None = None
    ) -> list[RecurringRecord]:
        return await self.recurring_on_weekday([resource_id], weekday, shift_key)

    async def series(self, series_id: int) -> RecurringRecord | None:
        """A single series in any status."""
        async with self.session() as db:
            result = await db.execute(
                select(RecurringReservation)
                .options(selectinload(RecurringReservation.user), selectinload(RecurringReservation.exceptions))
                .where(RecurringReservation.id == series_id)
            )
            row = result.scalar_one_or_none()
            return recurring_record(row) if row else None
