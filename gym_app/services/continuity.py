"""
Membership status and days remaining.

A member can hold several periods at once: a running monthly plan, a renewal
queued after it, a few day passes queued after that. Days remaining is the sum
of all of that future entitlement, not just `end_date - now` of the latest one.
"""

from datetime import datetime, timedelta

from gym_app.services.periods import (
    DAY_PASS_NAME,
    days_until,
    validate_periods,
)

EXPIRING_SOON_DAYS = 7

STATUS_ACTIVE = 'active'
STATUS_EXPIRING_SOON = 'expiring_soon'
STATUS_EXPIRED = 'expired'


def remaining_days(periods, reference: datetime) -> int:
    """Stitch unexpired periods into one count of remaining days."""
    upcoming = sorted(
        (period for period in periods if period.end_date > reference),
        key=lambda period: period.start_date,
    )

    cursor = reference
    total = 0
    for period in upcoming:
        if period.start_date > cursor:
            total += days_until(period.end_date, period.start_date) + 1
        else:
            total += max(0, days_until(period.end_date, cursor))
        cursor = max(cursor, period.end_date)
    return total


def is_expired(end: datetime, membership_type: str, reference: datetime) -> bool:
    """Day Pass compares calendar dates; everything else compares instants."""
    if end is None:
        return True
    if membership_type == DAY_PASS_NAME:
        return end.date() < reference.date()
    return end <= reference


def resolve_continuity(periods, membership_type: str, reference: datetime) -> dict:
    """
    Classify a member's entitlement at `reference`.

    Args:
        periods: All of the member's periods
        membership_type: The member's current package label
        reference: Instant to evaluate at

    Returns:
        dict with 'status' (active, expiring_soon, expired) and 'days_remaining'
    """
    periods = list(periods)
    validate_periods(periods)

    days_remaining = remaining_days(periods, reference)
    ends = [period.end_date for period in periods]
    latest = max(ends) if ends else None

    if is_expired(latest, membership_type, reference):
        status = STATUS_EXPIRED
    elif (
        membership_type != DAY_PASS_NAME
        and latest <= reference + timedelta(days=EXPIRING_SOON_DAYS)
        and days_remaining <= EXPIRING_SOON_DAYS
    ):
        status = STATUS_EXPIRING_SOON
    else:
        status = STATUS_ACTIVE

    return {'status': status, 'days_remaining': days_remaining}


def period_status(period, reference: datetime) -> str:
    """Label a single period for history listings."""
    if period.end_date < reference:
        return 'expired'
    if period.start_date > reference:
        return 'future'
    return 'active'
