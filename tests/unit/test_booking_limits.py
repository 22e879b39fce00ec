"""
Unit tests for customer booking limits.
"""

from datetime import timedelta

import pytest

from factories import MONDAY, build_appointment
from models.appointment import AppointmentStatus
from models.results import BookingLimitStatus
from scheduling.booking_limits import check_booking_limits, ensure_can_book
from utils.datetime_utils import week_bounds
from utils.exceptions import DailyLimitExceededError, WeeklyLimitExceededError


def test_week_bounds_monday_start():
    """Test weeks run Monday through Sunday."""
    wednesday = MONDAY + timedelta(days=2)
    sunday = MONDAY + timedelta(days=6)

    assert week_bounds(wednesday) == (MONDAY, sunday)
    assert week_bounds(sunday) == (MONDAY, sunday)
    assert week_bounds(MONDAY) == (MONDAY, sunday)


def test_first_booking_allowed():
    """Test a customer with no bookings may book."""
    decision = check_booking_limits([], MONDAY)

    assert decision.allowed
    assert decision.status == BookingLimitStatus.ALLOWED


def test_second_weekly_booking_allowed():
    """Test the second booking of a week on another day is accepted."""
    existing = [build_appointment(day=MONDAY)]

    decision = check_booking_limits(existing, MONDAY + timedelta(days=2))

    assert decision.allowed
    assert decision.same_week_count == 1


def test_second_same_day_booking_rejected_across_barbers():
    """Test the daily limit applies regardless of barber."""
    existing = [build_appointment(day=MONDAY, barber_id="other-barber")]

    decision = check_booking_limits(existing, MONDAY)

    assert decision.status == BookingLimitStatus.DAILY_LIMIT_EXCEEDED


def test_third_weekly_booking_rejected_across_barbers():
    """Test a third booking in the same week is rejected."""
    existing = [
        build_appointment(day=MONDAY, barber_id="barber-a", appointment_id="a"),
        build_appointment(day=MONDAY + timedelta(days=1), barber_id="barber-b", appointment_id="b"),
    ]

    decision = check_booking_limits(existing, MONDAY + timedelta(days=4))

    assert decision.status == BookingLimitStatus.WEEKLY_LIMIT_EXCEEDED


def test_daily_rule_checked_first():
    """Test the daily rejection wins when both limits are hit."""
    existing = [
        build_appointment(day=MONDAY, appointment_id="a"),
        build_appointment(day=MONDAY + timedelta(days=1), appointment_id="b"),
    ]

    decision = check_booking_limits(existing, MONDAY)

    assert decision.status == BookingLimitStatus.DAILY_LIMIT_EXCEEDED


def test_cancelled_bookings_do_not_count():
    """Test cancelled appointments are ignored."""
    existing = [
        build_appointment(day=MONDAY, status=AppointmentStatus.CANCELLED, appointment_id="a"),
        build_appointment(day=MONDAY + timedelta(days=1), appointment_id="b"),
    ]

    decision = check_booking_limits(existing, MONDAY)

    assert decision.allowed


def test_previous_week_does_not_count():
    """Test bookings from another week are outside the window."""
    existing = [
        build_appointment(day=MONDAY - timedelta(days=1), appointment_id="a"),
        build_appointment(day=MONDAY - timedelta(days=2), appointment_id="b"),
    ]

    assert check_booking_limits(existing, MONDAY).allowed


def test_ensure_can_book_raises_matching_errors():
    """Test rejections surface as distinct exceptions."""
    with pytest.raises(DailyLimitExceededError):
        ensure_can_book([build_appointment(day=MONDAY)], MONDAY)

    existing = [
        build_appointment(day=MONDAY, appointment_id="a"),
        build_appointment(day=MONDAY + timedelta(days=1), appointment_id="b"),
    ]
    with pytest.raises(WeeklyLimitExceededError):
        ensure_can_book(existing, MONDAY + timedelta(days=3))


def test_rejection_messages_use_configured_limits():
    """Test messages report the limits in force, not fixed numbers."""
    existing = [
        build_appointment(day=MONDAY, appointment_id="a"),
        build_appointment(day=MONDAY, appointment_id="b"),
    ]
    with pytest.raises(DailyLimitExceededError, match="At most 2 per day"):
        ensure_can_book(existing, MONDAY, max_per_day=2, max_per_week=5)

    with pytest.raises(WeeklyLimitExceededError, match="weekly limit of 2"):
        ensure_can_book(existing, MONDAY + timedelta(days=1), max_per_day=3, max_per_week=2)
