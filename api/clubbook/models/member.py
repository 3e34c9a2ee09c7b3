"""Member model.

The engine never authenticates anyone; it only needs the reservation owner's
display name to decorate occupancy results. Accounts, credentials and the
inactive-user retention workflow live with the booking CRUD.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from clubbook.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """A club member who can hold reservations."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
