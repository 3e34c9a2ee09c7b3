"""Read access to blackout windows."""

from collections.abc import Sequence
from datetime import date

from sqlalchemy import select

from clubbook.models.blackout import Blackout
from clubbook.models.resource import Resource
from clubbook.repositories.base import SqlRepository
from clubbook.services.records import BlackoutRecord


def to_record(row: Blackout) -> BlackoutRecord:
    return BlackoutRecord(
        id=row.id,
        day=row.blackout_date,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        reason=row.reason.name if row.reason else None,
        resource_ids=frozenset(r.id for r in row.resources),
    )


class BlackoutRepository(SqlRepository):
    async def blackouts_for(self, resource_ids: Sequence[int], days: Sequence[date]) -> list[BlackoutRecord]:
        """Blackouts on any of ``days`` covering at least one of the resources."""
        if not resource_ids or not days:
            return []
        async with self.session() as db:
            result = await db.execute(
                select(Blackout)
                .where(
                    Blackout.blackout_date.in_(list(days)),
                    Blackout.resources.any(Resource.id.in_(resource_ids)),
                )
                .order_by(Blackout.blackout_date, Blackout.starts_at)
            )
            return [to_record(b) for b in result.scalars().all()]

    async def blackouts_on(self, resource_id: int, days: Sequence[date]) -> list[BlackoutRecord]:
        return await self.blackouts_for([resource_id], days)
