"""Bookable resources.

Resource = a court or a barbecue pit. The kind decides which shift keys are
valid (hourly "HH:MM" for courts, DAY/NIGHT for pits); the conflict rules are
the same for both.
Activity = a sport played on courts (football, volleyball, ...).
"""

import enum

from sqlalchemy import Boolean, Column, Enum, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubbook.models.base import Base, TimestampMixin


class ResourceKind(enum.StrEnum):
    COURT = "court"
    BBQ_PIT = "bbq_pit"


resource_activities = Table(
    "resource_activities",
    Base.metadata,
    Column("resource_id", ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True),
    Column("activity_id", ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True),
)


class Activity(TimestampMixin, Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Activity {self.name}>"


class Resource(TimestampMixin, Base):
    """A bookable unit. Created and edited by the admin CRUD, read-only here."""

    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    number: Mapped[int] = mapped_column(nullable=False)
    kind: Mapped[ResourceKind] = mapped_column(
        Enum(ResourceKind, name="resource_kind", values_callable=lambda e: [x.value for x in e]),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Courts only; empty for barbecue pits
    activities: Mapped[list["Activity"]] = relationship(secondary=resource_activities, lazy="selectin")

    def __repr__(self) -> str:
        return f"<Resource {self.kind.value} #{self.number} {self.name}>"
