"""
Customer booking limits, counted across every barber.
"""

from datetime import date
from typing import Iterable, Optional, Union

from config import settings
from models.appointment import Appointment, AppointmentStatus
from models.results import BookingLimitDecision, BookingLimitStatus
from utils.datetime_utils import parse_iso_date, week_bounds
from utils.exceptions import DailyLimitExceededError, WeeklyLimitExceededError


def check_booking_limits(
    customer_appointments: Iterable[Appointment],
    target_date: Union[date, str],
    *,
    max_per_day: Optional[int] = None,
    max_per_week: Optional[int] = None,
) -> BookingLimitDecision:
    """
    Decide whether a customer may book another appointment on a date.

    The daily rule is evaluated before the weekly (Monday-start) rule.
    Cancelled appointments never count.
    """
    max_per_day = settings.max_bookings_per_day if max_per_day is None else max_per_day
    max_per_week = settings.max_bookings_per_week if max_per_week is None else max_per_week
    target_date = parse_iso_date(target_date)
    monday, sunday = week_bounds(target_date)

    active = [
        appt
        for appt in customer_appointments
        if appt.status_enum != AppointmentStatus.CANCELLED
    ]
    same_day = sum(1 for appt in active if appt.date == target_date)
    same_week = sum(1 for appt in active if monday <= appt.date <= sunday)

    if same_day >= max_per_day:
        status = BookingLimitStatus.DAILY_LIMIT_EXCEEDED
    elif same_week >= max_per_week:
        status = BookingLimitStatus.WEEKLY_LIMIT_EXCEEDED
    else:
        status = BookingLimitStatus.ALLOWED

    return BookingLimitDecision(
        status=status,
        same_day_count=same_day,
        same_week_count=same_week,
        max_per_day=max_per_day,
        max_per_week=max_per_week,
    )


def ensure_can_book(
    customer_appointments: Iterable[Appointment],
    target_date: Union[date, str],
    **limits,
) -> BookingLimitDecision:
    """
    Raise the matching limit error unless the booking is allowed.

    Raises:
        DailyLimitExceededError: Customer already booked that day
        WeeklyLimitExceededError: Customer reached the weekly limit
    """
    decision = check_booking_limits(customer_appointments, target_date, **limits)

    if decision.status == BookingLimitStatus.DAILY_LIMIT_EXCEEDED:
        raise DailyLimitExceededError(
            f"You already have {decision.same_day_count} appointment(s) on this day. "
            f"At most {decision.max_per_day} per day is allowed."
        )
    if decision.status == BookingLimitStatus.WEEKLY_LIMIT_EXCEEDED:
        raise WeeklyLimitExceededError(
            f"You already have {decision.same_week_count} appointments this week. "
            f"The weekly limit of {decision.max_per_week} has been reached."
        )

    return decision
