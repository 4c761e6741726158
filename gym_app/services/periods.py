"""
Membership period bounds.

Decides where a newly purchased period starts and ends, given the member's
existing periods and a reference instant supplied by the caller:

- Regular packages (duration in months) start right away when the member has
  nothing running, or at midnight after the last period when they do.
- Day Pass (duration 0) covers exactly one calendar day and is queued after
  the latest period the member holds, so several passes stack day by day.

Nothing here reads the clock or touches the database.
"""

import calendar
import math
from datetime import datetime, time, timedelta

from gym_app.services.errors import EmptyHistoryAmbiguity, InvalidDuration, MalformedPeriod

DAY_PASS_DURATION = 0
DAY_PASS_NAME = 'Day Pass'

ONE_DAY = timedelta(days=1)


def is_day_pass_duration(duration_months) -> bool:
    return duration_months == DAY_PASS_DURATION


def validate_duration(duration_months) -> int:
    """Return the duration if it is a non-negative whole number of months."""
    if isinstance(duration_months, bool) or not isinstance(duration_months, int):
        raise InvalidDuration(f"Duration must be a whole number of months, got {duration_months!r}")
    if duration_months < 0:
        raise InvalidDuration(f"Duration cannot be negative, got {duration_months}")
    return duration_months


def validate_periods(periods) -> None:
    """Reject any period that ends before it starts."""
    for period in periods:
        if period.end_date < period.start_date:
            raise MalformedPeriod(
                f"Period {getattr(period, 'id', None)} ends ({period.end_date}) "
                f"before it starts ({period.start_date})"
            )


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    """23:59:59.999 on the same calendar day."""
    return datetime.combine(moment.date(), time(23, 59, 59, 999000))


def add_months(moment: datetime, months: int) -> datetime:
    """Advance by calendar months, clamping to the last day of the target month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def inclusive_days(start: datetime, end: datetime) -> int:
    """Number of calendar days touched by [start, end], both ends counted."""
    return (end.date() - start.date()).days + 1


def days_until(later: datetime, earlier: datetime) -> int:
    """Whole days from earlier to later, rounded up."""
    return math.ceil((later - earlier) / ONE_DAY)


def latest_end(periods):
    """Greatest end_date in the history, or None when it is empty."""
    ends = [period.end_date for period in periods]
    return max(ends) if ends else None


def bounds_from_start(duration_months: int, start: datetime):
    """Bounds of a period that begins at an explicitly chosen start.

    Used for first enrollments and administrative period inserts, where nothing
    is being extended.
    """
    duration_months = validate_duration(duration_months)
    if is_day_pass_duration(duration_months):
        start = start_of_day(start)
        return start, end_of_day(start)
    return start, add_months(start, duration_months)


def compute_new_period(duration_months, periods, reference: datetime, start_override: datetime = None):
    """
    Compute (start, end) for a period bought at `reference`.

    Args:
        duration_months: Package duration, 0 for Day Pass
        periods: Every period the member has ever held (any status)
        reference: The purchase instant ("now" or the transaction date)
        start_override: Explicit start, only allowed for a member with no history

    Returns:
        tuple: (start, end) datetimes
    """
    duration_months = validate_duration(duration_months)
    periods = list(periods)
    validate_periods(periods)

    if start_override is not None:
        if periods:
            raise EmptyHistoryAmbiguity(
                "An explicit start date can only be used for a member without membership history"
            )
        return bounds_from_start(duration_months, start_override)

    anchor = latest_end(periods)
    extending = anchor is not None and anchor > reference

    if is_day_pass_duration(duration_months):
        day = start_of_day(anchor) + ONE_DAY if extending else start_of_day(reference)
        return day, end_of_day(day)

    start = start_of_day(anchor) + ONE_DAY if extending else reference
    return start, add_months(start, duration_months)
