"""Occurrences of recurring series.

A series "runs" on a date when the date falls on its weekday and on/after its
effective start. This is checked before exceptions are consulted: an
exception on a date the series never ran on suppresses nothing.
"""

import logging
from datetime import date, timedelta

from clubbook.core.exceptions import InvariantViolation
from clubbook.services.civil_calendar import Weekday, next_occurrence_on_or_after, to_date_key
from clubbook.services.records import RecurringRecord

logger = logging.getLogger(__name__)


def is_valid_occurrence(series: RecurringRecord, day: date) -> bool:
    if Weekday.of(day) != series.weekday:
        return False
    if series.effective_start is None:
        return True
    return to_date_key(day) >= to_date_key(series.effective_start)


def is_excepted(series: RecurringRecord, day: date) -> bool:
    return to_date_key(day) in series.exception_keys


def occupies(series: RecurringRecord, day: date) -> bool:
    """True when the series holds its slot on ``day``: active, running, not excepted."""
    return series.blocks and is_valid_occurrence(series, day) and not is_excepted(series, day)


def first_possible_date(series: RecurringRecord, today: date) -> date:
    """max(today, effective_start)."""
    if series.effective_start and series.effective_start > today:
        return series.effective_start
    return today


def next_real_occurrence(series: RecurringRecord, today: date, max_weeks: int = 120) -> date | None:
    """First occurrence on/after max(today, effective_start) that is not excepted.

    Gives up after ``max_weeks`` consecutive excepted weeks.
    """
    candidate = next_occurrence_on_or_after(first_possible_date(series, today), series.weekday)
    for _ in range(max_weeks):
        if not is_excepted(series, candidate):
            return candidate
        candidate += timedelta(weeks=1)
    return None


def occurrences_between(series: RecurringRecord, start: date, end: date) -> list[date]:
    """Valid occurrences in [start, end), exceptions included."""
    out: list[date] = []
    day = next_occurrence_on_or_after(start, series.weekday)
    while day < end:
        if is_valid_occurrence(series, day):
            out.append(day)
        day += timedelta(weeks=1)
    return out


def inert_exceptions(series: RecurringRecord) -> list[InvariantViolation]:
    """Exceptions that can never match an occurrence of their series.

    The engine treats them as no-ops; callers log them for data-quality follow-up.
    """
    violations = []
    for exc in series.exceptions:
        if not is_valid_occurrence(series, exc.day):
            violations.append(
                InvariantViolation(
                    f"Exception {exc.date_key} is not an occurrence of recurring series {series.id}",
                    details={"series_id": series.id, "date": exc.date_key, "weekday": series.weekday.value},
                )
            )
    return violations


def log_inert_exceptions(series_list: list[RecurringRecord]) -> None:
    for series in series_list:
        for violation in inert_exceptions(series):
            logger.warning("%s (ignored)", violation.message, extra={"details": violation.details})
