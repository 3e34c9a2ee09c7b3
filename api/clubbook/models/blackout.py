"""Blackout model.

An admin-declared window during which one or more resources cannot be used
(maintenance, events). Blackouts are keyed by a time window, not by shift.
"""

from datetime import date, time

from sqlalchemy import Column, Date, ForeignKey, Index, String, Table, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubbook.models.base import Base, TimestampMixin

blackout_resources = Table(
    "blackout_resources",
    Base.metadata,
    Column("blackout_id", ForeignKey("blackouts.id", ondelete="CASCADE"), primary_key=True),
    Column("resource_id", ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True),
)


class BlackoutReason(TimestampMixin, Base):
    __tablename__ = "blackout_reasons"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)


class Blackout(TimestampMixin, Base):
    __tablename__ = "blackouts"

    id: Mapped[int] = mapped_column(primary_key=True)
    blackout_date: Mapped[date] = mapped_column(Date, nullable=False)
    # Half-open [starts_at, ends_at); ends_at of None means end of day
    starts_at: Mapped[time] = mapped_column(Time, nullable=False)
    ends_at: Mapped[time | None] = mapped_column(Time)
    reason_id: Mapped[int | None] = mapped_column(ForeignKey("blackout_reasons.id"))

    reason: Mapped[BlackoutReason | None] = relationship(lazy="joined")
    resources: Mapped[list["Resource"]] = relationship(secondary=blackout_resources, lazy="selectin")

    __table_args__ = (Index("ix_blackouts_date", "blackout_date"),)

    def __repr__(self) -> str:
        return f"<Blackout {self.blackout_date} {self.starts_at}-{self.ends_at}>"


from clubbook.models.resource import Resource  # noqa: E402
