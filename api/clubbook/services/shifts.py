"""Shift keys and their time ranges.

Courts are booked by the hour ("18:00"), barbecue pits by coarse shift
(DAY/NIGHT). The conflict rules never look inside a shift except to test it
against a blackout window, so both kinds share one interface: an opaque
``key`` plus a half-open minute range ``[start_minute, end_minute)``.
"""

import enum
import re
from dataclasses import dataclass, field
from datetime import time

from clubbook.core.exceptions import ValidationError
from clubbook.models.resource import ResourceKind

_HOUR_KEY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
_CLOCK = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$|^24:00$")
MINUTES_PER_DAY = 24 * 60


class CoarsePeriod(enum.StrEnum):
    DAY = "DAY"
    NIGHT = "NIGHT"


def parse_clock(value: str) -> int:
    """'HH:MM' (or '24:00') -> minutes since midnight."""
    if not _CLOCK.match(value):
        raise ValueError(f"Invalid clock time '{value}', expected HH:MM")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_of(t: time | None) -> int:
    """Minutes since midnight; None is end of day."""
    if t is None:
        return MINUTES_PER_DAY
    return t.hour * 60 + t.minute


@dataclass(frozen=True)
class ShiftWindows:
    """Configured time ranges, in minutes, used to place shifts inside a day."""

    slot_minutes: int = 60
    day: tuple[int, int] = (8 * 60, 18 * 60)
    night: tuple[int, int] = (18 * 60, MINUTES_PER_DAY)

    @classmethod
    def from_settings(cls, settings) -> "ShiftWindows":
        return cls(
            slot_minutes=settings.slot_minutes,
            day=(parse_clock(settings.day_shift_start), parse_clock(settings.day_shift_end)),
            night=(parse_clock(settings.night_shift_start), parse_clock(settings.night_shift_end)),
        )


@dataclass(frozen=True)
class HourlyShift:
    start: time
    slot_minutes: int = field(default=60, compare=False)

    @property
    def key(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def start_minute(self) -> int:
        return minutes_of(self.start)

    @property
    def end_minute(self) -> int:
        return min(self.start_minute + self.slot_minutes, MINUTES_PER_DAY)


@dataclass(frozen=True)
class CoarseShift:
    period: CoarsePeriod
    window: tuple[int, int] = field(default=(0, MINUTES_PER_DAY), compare=False)

    @property
    def key(self) -> str:
        return self.period.value

    @property
    def start_minute(self) -> int:
        return self.window[0]

    @property
    def end_minute(self) -> int:
        return self.window[1]


Shift = HourlyShift | CoarseShift


def overlaps(shift: Shift, start_minute: int, end_minute: int) -> bool:
    """Half-open interval intersection, same rule as the court conflict check."""
    return start_minute < shift.end_minute and shift.start_minute < end_minute


def parse_shift(kind: ResourceKind, raw: str | None, windows: ShiftWindows | None = None) -> Shift:
    """Validate a raw shift key against the resource kind."""
    windows = windows or ShiftWindows()
    if not raw:
        raise ValidationError("shift", "shift is required")
    value = raw.strip().upper()

    if kind == ResourceKind.COURT:
        match = _HOUR_KEY.match(value)
        if not match:
            raise ValidationError("shift", f"Invalid court time '{raw}', expected HH:MM")
        start = time(int(match.group(1)), int(match.group(2)))
        return HourlyShift(start=start, slot_minutes=windows.slot_minutes)

    try:
        period = CoarsePeriod(value)
    except ValueError:
        raise ValidationError("shift", f"Invalid shift '{raw}' for a barbecue pit. Choose DAY or NIGHT.") from None
    return CoarseShift(period=period, window=windows.day if period == CoarsePeriod.DAY else windows.night)


def check_shift_syntax(raw: str | None) -> str:
    """Reject keys that are valid for no resource kind, before any lookup."""
    if not raw:
        raise ValidationError("shift", "shift is required")
    value = raw.strip().upper()
    if not _HOUR_KEY.match(value) and value not in CoarsePeriod.__members__:
        raise ValidationError("shift", f"Invalid shift '{raw}'. Use HH:MM for courts or DAY/NIGHT for barbecue pits.")
    return value


def default_shifts(kind: ResourceKind, windows: ShiftWindows, first_hour: int, last_hour: int) -> list[Shift]:
    """Full grid for a resource kind: every hour for courts, both periods for pits."""
    if kind == ResourceKind.COURT:
        return [HourlyShift(start=time(h, 0), slot_minutes=windows.slot_minutes) for h in range(first_hour, last_hour + 1)]
    return [
        CoarseShift(period=CoarsePeriod.DAY, window=windows.day),
        CoarseShift(period=CoarsePeriod.NIGHT, window=windows.night),
    ]
