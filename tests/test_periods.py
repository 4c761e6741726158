"""Tests for new period bounds: month arithmetic, extension and Day Pass stacking."""

from datetime import datetime, timedelta

import pytest

from gym_app.services.errors import EmptyHistoryAmbiguity, InvalidDuration, MalformedPeriod
from gym_app.services.periods import (
    add_months,
    bounds_from_start,
    compute_new_period,
    end_of_day,
    inclusive_days,
    start_of_day,
    validate_duration,
)


REFERENCE = datetime(2024, 3, 10, 14, 30)


# ── Calendar helpers ──────────────────────────────────────────────────────────

class TestAddMonths:
    def test_clamps_to_end_of_february_in_leap_year(self):
        assert add_months(datetime(2024, 1, 31, 9, 0), 1) == datetime(2024, 2, 29, 9, 0)

    def test_clamps_to_end_of_february(self):
        assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)

    def test_crosses_year_boundary(self):
        assert add_months(datetime(2023, 11, 15), 3) == datetime(2024, 2, 15)

    def test_twelve_months(self):
        assert add_months(datetime(2024, 2, 29), 12) == datetime(2025, 2, 28)

    def test_zero_months_is_identity(self):
        assert add_months(REFERENCE, 0) == REFERENCE


class TestDayBounds:
    def test_start_and_end_of_day(self):
        assert start_of_day(REFERENCE) == datetime(2024, 3, 10)
        assert end_of_day(REFERENCE) == datetime(2024, 3, 10, 23, 59, 59, 999000)

    def test_inclusive_days_counts_both_ends(self):
        assert inclusive_days(datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59)) == 31
        assert inclusive_days(datetime(2024, 1, 5), end_of_day(datetime(2024, 1, 5))) == 1


# ── Duration validation ───────────────────────────────────────────────────────

class TestValidateDuration:
    @pytest.mark.parametrize('value', [-1, 1.5, '1', None, True])
    def test_rejects_invalid_durations(self, value):
        with pytest.raises(InvalidDuration):
            validate_duration(value)

    def test_accepts_day_pass_and_months(self):
        assert validate_duration(0) == 0
        assert validate_duration(12) == 12

    def test_compute_rejects_negative_duration(self):
        with pytest.raises(InvalidDuration):
            compute_new_period(-3, [], REFERENCE)


# ── Regular packages ──────────────────────────────────────────────────────────

class TestRegularPeriods:
    def test_first_purchase_starts_now(self):
        start, end = compute_new_period(1, [], REFERENCE)
        assert start == REFERENCE
        assert end == datetime(2024, 4, 10, 14, 30)

    def test_extends_after_running_period(self, period):
        running = period(datetime(2024, 3, 1), datetime(2024, 3, 20, 14, 0))
        start, end = compute_new_period(1, [running], REFERENCE)
        assert start == datetime(2024, 3, 21)
        assert end == datetime(2024, 4, 21)

    def test_lapsed_member_starts_now(self, period):
        lapsed = period(datetime(2024, 1, 1), datetime(2024, 2, 1))
        start, end = compute_new_period(3, [lapsed], REFERENCE)
        assert start == REFERENCE
        assert end == datetime(2024, 6, 10, 14, 30)

    def test_anchors_on_latest_end_not_last_in_list(self, period):
        later = period(datetime(2024, 3, 1), datetime(2024, 5, 31, 12, 0))
        earlier = period(datetime(2024, 2, 1), datetime(2024, 3, 15))
        start, _ = compute_new_period(1, [later, earlier], REFERENCE)
        assert start == datetime(2024, 6, 1)

    def test_new_period_never_overlaps_history(self, period):
        history = [
            period(datetime(2024, 3, 1), datetime(2024, 4, 1)),
            period(datetime(2024, 4, 2), datetime(2024, 5, 2, 8, 0)),
        ]
        start, end = compute_new_period(6, history, REFERENCE)
        assert start > max(p.end_date for p in history)
        assert end > start

    def test_same_inputs_same_outputs(self, period):
        history = [period(datetime(2024, 3, 5), datetime(2024, 3, 25))]
        snapshot = list(history)
        assert compute_new_period(1, history, REFERENCE) == compute_new_period(1, history, REFERENCE)
        assert history == snapshot


# ── Day Pass ──────────────────────────────────────────────────────────────────

class TestDayPass:
    def test_first_day_pass_covers_today(self):
        start, end = compute_new_period(0, [], REFERENCE)
        assert start == datetime(2024, 3, 10)
        assert end == datetime(2024, 3, 10, 23, 59, 59, 999000)

    def test_day_passes_stack_day_by_day(self, period):
        history = []
        days = []
        for _ in range(3):
            start, end = compute_new_period(0, history, REFERENCE)
            history.append(period(start, end, package_name='Day Pass'))
            days.append(start.date())
        assert [d.day for d in days] == [10, 11, 12]

    def test_day_pass_queued_after_monthly(self, period):
        monthly = period(datetime(2024, 3, 1, 9, 0), datetime(2024, 4, 1, 9, 0))
        start, end = compute_new_period(0, [monthly], REFERENCE)
        assert start == datetime(2024, 4, 2)
        assert end == end_of_day(datetime(2024, 4, 2))

    def test_day_pass_after_expired_period_is_today(self, period):
        old = period(datetime(2024, 1, 1), datetime(2024, 2, 1))
        start, _ = compute_new_period(0, [old], REFERENCE)
        assert start == start_of_day(REFERENCE)


# ── Explicit start dates ──────────────────────────────────────────────────────

class TestStartOverride:
    def test_override_used_for_empty_history(self):
        chosen = datetime(2024, 1, 31, 8, 0)
        assert compute_new_period(1, [], REFERENCE, start_override=chosen) == (
            chosen, datetime(2024, 2, 29, 8, 0)
        )

    def test_day_pass_override_truncated_to_midnight(self):
        start, end = bounds_from_start(0, datetime(2024, 3, 12, 17, 45))
        assert start == datetime(2024, 3, 12)
        assert end == end_of_day(start)

    def test_override_with_history_is_ambiguous(self, period):
        history = [period(datetime(2024, 3, 1), datetime(2024, 4, 1))]
        with pytest.raises(EmptyHistoryAmbiguity):
            compute_new_period(1, history, REFERENCE, start_override=REFERENCE)


class TestMalformedHistory:
    def test_period_ending_before_start_is_rejected(self, period):
        broken = period(datetime(2024, 3, 5), datetime(2024, 3, 1))
        with pytest.raises(MalformedPeriod):
            compute_new_period(1, [broken], REFERENCE)

    def test_zero_length_period_is_allowed(self, period):
        instant = datetime(2024, 3, 1)
        compute_new_period(1, [period(instant, instant)], REFERENCE)

    def test_month_bounds_follow_reference_seconds(self):
        ref = REFERENCE + timedelta(seconds=42)
        start, end = compute_new_period(1, [], ref)
        assert (start.second, end.second) == (42, 42)
