"""
Tests for cinetix.sla.domain.value_objects: countdown math.

Covers:
  - format_remaining: hours/minutes/seconds buckets and the sign
  - countdown: warning and breach boundaries, percent clamp, inactive cases
  - response_badge: met/breached on finished tickets, "Responded in" otherwise
  - indicator: hours left, minutes left, hours overdue
"""

from datetime import timedelta

import pytest

from cinetix.config import Priority, TicketStatus, SLABadgeState
from cinetix.sla.domain import SLACalculator

from conftest import NOW


class TestFormatRemaining:
    @pytest.mark.parametrize("seconds,expected", [
        (9000, "2h 30m"),
        (3600, "1h 0m"),
        (125, "2m 5s"),
        (59, "59s"),
        (0, "0s"),
        (-45, "-45s"),
        (-3720, "-1h 2m"),
    ])
    def test_buckets(self, seconds, expected):
        assert SLACalculator.format_remaining(seconds) == expected

    def test_zero_has_no_sign(self):
        assert not SLACalculator.format_remaining(0).startswith("-")


class TestCountdown:
    def test_low_priority_one_hour_old(self):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=1), 72, NOW)

        assert countdown.remaining_seconds == 71 * 3600
        assert countdown.percent_remaining == pytest.approx(98.61, abs=0.01)
        assert not countdown.is_warning
        assert not countdown.is_breached
        assert countdown.state == SLABadgeState.COUNTING
        assert countdown.time_remaining == "71h 0m"

    def test_exactly_at_deadline_is_breached_not_warning(self):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=2), 2, NOW)

        assert countdown.remaining_seconds == 0
        assert countdown.time_remaining == "0s"
        assert countdown.is_breached
        assert not countdown.is_warning
        assert countdown.percent_remaining == 0.0

    def test_warning_within_last_quarter(self):
        # 8h target, 6h 30m elapsed -> 1h 30m left (18.75%)
        countdown = SLACalculator.countdown(NOW - timedelta(hours=6, minutes=30), 8, NOW)

        assert countdown.is_warning
        assert not countdown.is_breached
        assert countdown.state == SLABadgeState.WARNING
        assert countdown.time_remaining == "1h 30m"

    def test_warning_boundary_is_inclusive(self):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=6), 8, NOW)

        assert countdown.percent_remaining == 25.0
        assert countdown.is_warning

    def test_overdue_counts_up_with_minus_sign(self):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=3, minutes=2), 2, NOW)

        assert countdown.is_breached
        assert countdown.remaining_seconds == -(62 * 60)
        assert countdown.time_remaining == "-1h 2m"
        assert countdown.percent_remaining == 0.0
        assert countdown.state == SLABadgeState.BREACHED

    def test_percent_never_exceeds_100(self):
        # Clock skew: ticket created slightly in the future
        countdown = SLACalculator.countdown(NOW + timedelta(minutes=5), 2, NOW)

        assert countdown.percent_remaining == 100.0

    def test_inactive_after_first_response(self):
        created = NOW - timedelta(hours=10)
        countdown = SLACalculator.countdown(
            created, 2, NOW, first_response_at=created + timedelta(hours=1)
        )

        assert not countdown.is_active
        assert not countdown.is_breached
        assert countdown.state == SLABadgeState.INACTIVE

    @pytest.mark.parametrize("status", [TicketStatus.RESOLVED, TicketStatus.CLOSED])
    def test_inactive_when_finished(self, status):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=100), 2, NOW, status=status)

        assert not countdown.is_active

    @pytest.mark.parametrize("priority_hours", [2, 8, 24, 72])
    def test_overdue_whole_hours_always_breached(self, priority_hours):
        countdown = SLACalculator.countdown(NOW - timedelta(hours=priority_hours + 1), priority_hours, NOW)

        assert countdown.is_breached
        assert not countdown.is_warning


class TestResponseBadge:
    def test_resolved_within_target_is_met(self):
        created = NOW - timedelta(hours=20)
        badge = SLACalculator.response_badge(
            created, created + timedelta(hours=5), 8, TicketStatus.RESOLVED
        )

        assert badge.label == "Met SLA"
        assert badge.state == SLABadgeState.MET
        assert badge.within_sla
        assert badge.response_hours == 5

    def test_closed_late_is_breached(self):
        created = NOW - timedelta(hours=20)
        badge = SLACalculator.response_badge(
            created, created + timedelta(hours=9), 8, TicketStatus.CLOSED
        )

        assert badge.label == "Breached SLA"
        assert badge.state == SLABadgeState.BREACHED
        assert not badge.within_sla

    def test_open_ticket_shows_response_time(self):
        created = NOW - timedelta(hours=20)
        badge = SLACalculator.response_badge(
            created, created + timedelta(hours=3, minutes=40), 8, TicketStatus.IN_PROGRESS
        )

        assert badge.label == "Responded in 3h"
        assert badge.state == SLABadgeState.RESPONDED

    def test_no_response_no_badge(self):
        assert SLACalculator.response_badge(NOW, None, 8, TicketStatus.OPEN) is None


class TestIndicator:
    def test_hours_left(self):
        indicator = SLACalculator.indicator(NOW - timedelta(hours=1), 8, NOW)

        assert indicator.label == "7h left"
        assert not indicator.is_warning

    def test_minutes_left_in_last_hour(self):
        indicator = SLACalculator.indicator(NOW - timedelta(hours=1, minutes=35), 2, NOW)

        assert indicator.label == "25m left"
        assert indicator.is_warning
        assert not indicator.is_breached

    def test_overdue(self):
        indicator = SLACalculator.indicator(NOW - timedelta(hours=5), 2, NOW)

        assert indicator.label == "3h overdue"
        assert indicator.is_breached

    def test_elapsed_hours_truncates(self):
        assert SLACalculator.elapsed_hours(NOW - timedelta(hours=2, minutes=59), NOW) == 2


def test_deadline_adds_target_hours():
    assert SLACalculator.deadline(NOW, 24) == NOW + timedelta(hours=24)


def test_targets_match_priority_defaults():
    from cinetix.sla.domain import SLASettings

    sla_settings = SLASettings()
    assert sla_settings.target_hours_for(Priority.URGENT) == 2
    assert sla_settings.target_hours_for(Priority.LOW) == 72
