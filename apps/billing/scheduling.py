"""
Due-date scheduling.

Pure calendar arithmetic that pins the next payment due date to a team's
billing anchor. Nothing in this module touches the database or reads the
clock: ``now`` is always passed in by the caller.

Example:
    Monthly schedule anchored to the 31st::

        from datetime import datetime, timezone
        from apps.billing.scheduling import BillingAnchor, compute_next_due_date

        compute_next_due_date(
            datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
            'month',
            BillingAnchor(day_of_month=31),
        )
        # datetime(2024, 2, 29, 0, 0, tzinfo=timezone.utc)
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from apps.billing.exceptions import InvalidAnchorError, MissingAnchorFieldError


WEEK = 'week'
MONTH = 'month'
QUARTER = 'quarter'


@dataclass(frozen=True)
class BillingAnchor:
    """
    Calendar rule pinning recurring due dates.

    Attributes:
        weekday: 0..6 with Sunday=0, used by weekly schedules.
        day_of_month: 1..31, used by monthly and quarterly schedules.
            Clamped to the length of the target month.
        month_in_quarter: 1..3, used by quarterly schedules.
    """

    weekday: Optional[int] = None
    day_of_month: Optional[int] = None
    month_in_quarter: Optional[int] = None


def to_utc(value: datetime) -> datetime:
    """Convert to an aware UTC datetime. Naive datetimes are treated as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day_utc(value: datetime) -> datetime:
    """Truncate to 00:00:00 UTC. Naive datetimes are treated as UTC."""
    return to_utc(value).replace(hour=0, minute=0, second=0, microsecond=0)


def clamp_day_of_month(year: int, month: int, day: int) -> int:
    """Clamp ``day`` to the last valid day of ``month`` (1-based)."""
    last_day = calendar.monthrange(year, month)[1]
    return max(1, min(day, last_day))


REQUIRED_FIELDS = {
    WEEK: ('weekday',),
    MONTH: ('day_of_month',),
    QUARTER: ('day_of_month', 'month_in_quarter'),
}


def anchor_for_interval(
    interval: str,
    *,
    weekday: Optional[int] = None,
    day_of_month: Optional[int] = None,
    month_in_quarter: Optional[int] = None
) -> BillingAnchor:
    """Build an anchor keeping only the fields ``interval`` uses."""
    fields = REQUIRED_FIELDS.get(interval, ())
    return BillingAnchor(
        weekday=weekday if 'weekday' in fields else None,
        day_of_month=day_of_month if 'day_of_month' in fields else None,
        month_in_quarter=month_in_quarter if 'month_in_quarter' in fields else None,
    )


def validate_anchor(interval: str, anchor: BillingAnchor) -> None:
    """
    Check that ``anchor`` can drive a schedule for ``interval``.

    Raises:
        MissingAnchorFieldError: A required field is None.
        InvalidAnchorError: The interval is unknown or a present field is
            outside its domain.
    """
    if interval not in REQUIRED_FIELDS:
        raise InvalidAnchorError(f"Unknown billing interval '{interval}'", field='interval')

    for field in REQUIRED_FIELDS[interval]:
        if getattr(anchor, field) is None:
            raise MissingAnchorFieldError(
                f"Billing anchor field '{field}' is required for interval '{interval}'",
                field=field,
            )

    if anchor.weekday is not None and not 0 <= anchor.weekday <= 6:
        raise InvalidAnchorError(f"weekday must be 0..6, got {anchor.weekday}", field='weekday')
    if anchor.day_of_month is not None and not 1 <= anchor.day_of_month <= 31:
        raise InvalidAnchorError(
            f"day_of_month must be 1..31, got {anchor.day_of_month}", field='day_of_month'
        )
    if anchor.month_in_quarter is not None and anchor.month_in_quarter not in (1, 2, 3):
        raise InvalidAnchorError(
            f"month_in_quarter must be 1, 2 or 3, got {anchor.month_in_quarter}",
            field='month_in_quarter',
        )


def _on_day(year: int, month0: int, day: int) -> datetime:
    """Build a UTC midnight from a 0-based month that may exceed 11."""
    year += month0 // 12
    month = month0 % 12 + 1
    return datetime(year, month, clamp_day_of_month(year, month, day), tzinfo=timezone.utc)


def compute_next_due_date(now: datetime, interval: str, anchor: BillingAnchor) -> datetime:
    """
    Compute the next due instant strictly after ``now``'s start of day.

    Weekly schedules always advance to the next occurrence of the weekday,
    never today. Monthly schedules land in the calendar month after ``now``.
    Quarterly schedules land in the selected month of the next calendar
    quarter. Days of month are clamped to the target month's length.

    Args:
        now: Reference instant (payment time or sweep time).
        interval: One of ``week``, ``month`` or ``quarter``.
        anchor: The team's billing anchor.

    Returns:
        Aware UTC datetime at midnight of the due date.

    Raises:
        MissingAnchorFieldError: A field required by ``interval`` is None.
        InvalidAnchorError: A field is out of its domain or the interval
            is unknown.
    """
    validate_anchor(interval, anchor)
    base = start_of_day_utc(now)

    if interval == WEEK:
        # isoweekday: Monday=1..Sunday=7, so % 7 gives Sunday=0
        today = base.isoweekday() % 7
        delta = (anchor.weekday - today + 7) % 7 or 7
        return base + timedelta(days=delta)

    if interval == MONTH:
        # base.month is 1-based, which is next month's 0-based index
        return _on_day(base.year, base.month, anchor.day_of_month)

    next_quarter_start = ((base.month - 1) // 3) * 3 + 3
    return _on_day(
        base.year,
        next_quarter_start + anchor.month_in_quarter - 1,
        anchor.day_of_month,
    )
