"""Resource metadata lookups. Used to validate and decorate, never to decide conflicts."""

from collections.abc import Sequence

from sqlalchemy import String, cast, select

from clubbook.models.resource import Activity, Resource, ResourceKind
from clubbook.repositories.base import SqlRepository
from clubbook.services.records import ResourceInfo


def to_record(resource: Resource) -> ResourceInfo:
    return ResourceInfo(
        id=resource.id,
        name=resource.name,
        number=resource.number,
        kind=resource.kind,
        activity_ids=frozenset(a.id for a in resource.activities),
    )


class ResourceRepository(SqlRepository):
    async def get(self, resource_id: int) -> ResourceInfo | None:
        async with self.session() as db:
            result = await db.execute(
                select(Resource).where(Resource.id == resource_id, Resource.is_active.is_(True))
            )
            resource = result.scalar_one_or_none()
            return to_record(resource) if resource else None

    async def find(
        self,
        ids: Sequence[int] | None = None,
        kind: ResourceKind | None = None,
        activity_id: int | None = None,
    ) -> list[ResourceInfo]:
        """Active resources matching every given filter, ordered by kind then number."""
        query = select(Resource).where(Resource.is_active.is_(True))
        if ids:
            query = query.where(Resource.id.in_(ids))
        if kind:
            query = query.where(Resource.kind == kind)
        if activity_id is not None:
            query = query.where(Resource.activities.any(Activity.id == activity_id))

        async with self.session() as db:
            result = await db.execute(query.order_by(cast(Resource.kind, String), Resource.number, Resource.id))
            return [to_record(r) for r in result.scalars().all()]
