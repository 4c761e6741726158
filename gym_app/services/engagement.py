"""Membership history statistics and loyalty scoring."""

import math

from gym_app.services.periods import inclusive_days, validate_periods

LOYALTY_REPEAT_PERIODS = 3
LOYALTY_SHORT_GAP_DAYS = 30
LOYALTY_LONG_DURATION_DAYS = 30
LOYALTY_HIGH_SPEND = 1_000_000


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _empty_summary() -> dict:
    return {
        'total_periods': 0,
        'total_days': 0,
        'total_spent': 0,
        'average_duration': 0,
        'gaps': [],
        'loyalty_score': 0,
        'membership_type': 'new',
        'average_gap_days': 0,
    }


def classify_tier(total_periods: int) -> str:
    if total_periods >= 5:
        return 'loyal'
    if total_periods >= 3:
        return 'returning'
    if total_periods == 2:
        return 'second_time'
    return 'new'


def find_gaps(sorted_periods) -> list:
    """Uncovered calendar days between consecutive periods.

    Back-to-back and overlapping periods produce no gap.
    """
    gaps = []
    for index in range(1, len(sorted_periods)):
        previous_end = sorted_periods[index - 1].end_date
        current_start = sorted_periods[index].start_date
        gap_days = (current_start.date() - previous_end.date()).days - 1
        if gap_days > 0:
            gaps.append({
                'after_period': index - 1,
                'before_period': index,
                'days': gap_days,
                'start_date': previous_end,
                'end_date': current_start,
            })
    return gaps


def analyze_engagement(periods) -> dict:
    """
    Summarize a member's whole period history.

    The input is sorted into a new list; the caller's list keeps its order.
    Periods without a linked transaction count as zero spend.
    """
    sorted_periods = sorted(periods, key=lambda period: period.start_date)
    validate_periods(sorted_periods)
    if not sorted_periods:
        return _empty_summary()

    total_periods = len(sorted_periods)
    total_days = sum(inclusive_days(p.start_date, p.end_date) for p in sorted_periods)
    total_spent = sum(p.transaction.amount for p in sorted_periods if p.transaction is not None)

    gaps = find_gaps(sorted_periods)
    total_gap_days = sum(gap['days'] for gap in gaps)
    average_gap = total_gap_days / len(gaps) if gaps else 0
    average_duration = total_days / total_periods

    loyalty_score = 0
    if total_periods >= LOYALTY_REPEAT_PERIODS:
        loyalty_score += 30
    if average_gap < LOYALTY_SHORT_GAP_DAYS:
        loyalty_score += 25
    if average_duration > LOYALTY_LONG_DURATION_DAYS:
        loyalty_score += 25
    if total_spent > LOYALTY_HIGH_SPEND:
        loyalty_score += 20

    return {
        'total_periods': total_periods,
        'total_days': total_days,
        'total_spent': total_spent,
        'average_duration': _round_half_up(average_duration),
        'gaps': gaps,
        'loyalty_score': min(100, loyalty_score),
        'membership_type': classify_tier(total_periods),
        'average_gap_days': _round_half_up(average_gap),
    }
