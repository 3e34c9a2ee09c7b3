"""Reservation models.

OneOffReservation ("comum") holds a resource on one calendar date.
RecurringReservation ("permanente") holds it every week on a weekday/shift
until cancelled, optionally only from an effective start date onwards.
RecurringException suppresses a single occurrence of a recurring series.

The shift column stores the opaque shift key: "HH:MM" for courts, "DAY" or
"NIGHT" for barbecue pits. Dates are plain SQL DATEs in the club's civil
calendar, never instants.
"""

import enum
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from clubbook.models.base import Base, TimestampMixin
from clubbook.services.civil_calendar import Weekday


class ReservationStatus(enum.StrEnum):
    CONFIRMED = "confirmed"
    FINISHED = "finished"
    CANCELLED = "cancelled"
    TRANSFERRED = "transferred"


# Statuses that never block a slot
INACTIVE_STATUSES = frozenset({ReservationStatus.CANCELLED, ReservationStatus.TRANSFERRED})

_status_enum = Enum(ReservationStatus, name="reservation_status", values_callable=lambda e: [x.value for x in e])


class OneOffReservation(TimestampMixin, Base):
    __tablename__ = "one_off_reservations"

    id: Mapped[int] = mapped_column(primary_key=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("resources.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    reservation_date: Mapped[date] = mapped_column(Date, nullable=False)
    shift: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(_status_enum, default=ReservationStatus.CONFIRMED, nullable=False)

    user: Mapped["User"] = relationship(lazy="joined")

    __table_args__ = (
        # Upstream guarantee against double booking: one blocking reservation per slot
        Index(
            "ix_one_off_no_double",
            "resource_id",
            "reservation_date",
            "shift",
            unique=True,
            postgresql_where=text("status IN ('confirmed', 'finished')"),
            sqlite_where=text("status IN ('confirmed', 'finished')"),
        ),
        Index("ix_one_off_resource_date", "resource_id", "reservation_date"),
    )

    def __repr__(self) -> str:
        return f"<OneOffReservation {self.reservation_date} {self.shift} resource={self.resource_id}>"


class RecurringReservation(TimestampMixin, Base):
    __tablename__ = "recurring_reservations"

    id: Mapped[int] = mapped_column(primary_key=True)
    resource_id: Mapped[int] = mapped_column(ForeignKey("resources.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    weekday: Mapped[Weekday] = mapped_column(
        Enum(Weekday, name="weekday", values_callable=lambda e: [x.value for x in e]), nullable=False
    )
    shift: Mapped[str] = mapped_column(String(10), nullable=False)
    # Null: active since creation
    effective_start: Mapped[date | None] = mapped_column(Date)
    status: Mapped[ReservationStatus] = mapped_column(_status_enum, default=ReservationStatus.CONFIRMED, nullable=False)

    user: Mapped["User"] = relationship(lazy="joined")
    exceptions: Mapped[list["RecurringException"]] = relationship(
        back_populates="series",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="RecurringException.exception_date",
    )

    __table_args__ = (Index("ix_recurring_resource_weekday", "resource_id", "weekday", "shift"),)

    def __repr__(self) -> str:
        return f"<RecurringReservation {self.weekday.value} {self.shift} resource={self.resource_id}>"


class RecurringException(TimestampMixin, Base):
    """One suppressed occurrence of a recurring series. The series stays active."""

    __tablename__ = "recurring_exceptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    series_id: Mapped[int] = mapped_column(
        ForeignKey("recurring_reservations.id", ondelete="CASCADE"), nullable=False
    )
    exception_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)

    series: Mapped["RecurringReservation"] = relationship(back_populates="exceptions")

    __table_args__ = (UniqueConstraint("series_id", "exception_date", name="uq_recurring_exception_date"),)

    def __repr__(self) -> str:
        return f"<RecurringException series={self.series_id} {self.exception_date}>"


# Import for type hints
from clubbook.models.member import User  # noqa: E402
