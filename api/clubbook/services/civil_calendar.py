"""Civil calendar helpers.

Pure calculation module: no database, no async, no FastAPI dependencies.
Every date in the engine is a ``datetime.date`` in the club's civil calendar.
The only place an instant is converted to a date is ``today_local``; all
equality and membership checks go through ``to_date_key``.
"""

import calendar
import enum
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from clubbook.core.exceptions import ValidationError

DEFAULT_TIMEZONE = "America/Sao_Paulo"


class Weekday(enum.StrEnum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def index(self) -> int:
        """Same numbering as ``date.weekday()``: Monday is 0."""
        return list(Weekday).index(self)

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return list(cls)[day.weekday()]

    @classmethod
    def parse(cls, raw: "str | Weekday | None", field: str = "weekday") -> "Weekday":
        """Coerce a weekday code (case-insensitive) or fail with a ValidationError."""
        if isinstance(raw, Weekday):
            return raw
        if not raw:
            raise ValidationError(field, "weekday is required")
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ValidationError(
                field, f"Invalid weekday '{raw}'. Choose from: {', '.join(w.value for w in cls)}."
            ) from None


def today_local(tz_name: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> date:
    """Today's date in the civil timezone. ``now`` must be timezone-aware when given."""
    tz = ZoneInfo(tz_name)
    current = now.astimezone(tz) if now is not None else datetime.now(tz)
    return current.date()


def next_occurrence_on_or_after(from_date: date, weekday: "Weekday | str") -> date:
    """Smallest date >= from_date falling on weekday. from_date itself qualifies."""
    target = Weekday.parse(weekday)
    delta = (target.index - from_date.weekday()) % 7
    return from_date + timedelta(days=delta)


def enumerate_weekly_occurrences(from_date: date, weekday: "Weekday | str", count: int) -> list[date]:
    """Exactly ``count`` dates, 7 days apart, starting at the next occurrence on/after from_date."""
    if count < 0:
        raise ValidationError("count", "count must not be negative")
    first = next_occurrence_on_or_after(from_date, weekday)
    return [first + timedelta(weeks=i) for i in range(count)]


def to_date_key(day: date) -> str:
    """Canonical YYYY-MM-DD key."""
    return day.strftime("%Y-%m-%d")


def parse_date_key(raw: str | None, field: str = "date") -> date:
    if not raw:
        raise ValidationError(field, f"{field} is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        raise ValidationError(field, f"Invalid date '{raw}', expected YYYY-MM-DD") from None


def add_months(day: date, months: int) -> date:
    """Same day-of-month ``months`` later, clamped to the last day of the target month.

    2024-01-31 + 1 -> 2024-02-29
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))
