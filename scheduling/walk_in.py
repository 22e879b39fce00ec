"""
Walk-in placement: earliest conflict-free start today.
"""

from datetime import date, datetime
from typing import Iterable, Optional, Union

from config import settings
from models.appointment import TERMINAL_STATUSES, Appointment
from models.results import AvailabilityStatus
from models.schedule import BarberSchedule, UnavailableDate
from scheduling.availability import busy_intervals, candidate_starts, is_free, open_day
from utils.datetime_utils import minutes_of_day
from utils.exceptions import BarberClosedError, DateUnavailableError, NoSlotAvailableError
from utils.logging_config import get_logger
from utils.time_labels import minutes_to_time, time_to_minutes

logger = get_logger(__name__)


def find_walk_in_slot(
    schedule: BarberSchedule,
    unavailable_dates: Iterable[Union[UnavailableDate, date, str]],
    todays_appointments: Iterable[Appointment],
    service_duration: int,
    now: datetime,
    *,
    step: Optional[int] = None,
    buffer: Optional[int] = None,
) -> str:
    """
    Find the first start time a walk-in can take today.

    Candidates sit on the schedule's step grid at or after
    max(opening time, now + buffer). Completed, no-show and cancelled
    appointments do not block. When the grid search fails, one more
    candidate right after the latest appointment end is tried.

    Returns:
        Start time label

    Raises:
        BarberClosedError: Barber does not work today
        DateUnavailableError: Today is blocked
        NoSlotAvailableError: No free interval before closing
    """
    if service_duration <= 0:
        raise ValueError(f"Service duration must be positive, got {service_duration}")

    step = settings.slot_step_minutes if step is None else step
    buffer = settings.walk_in_buffer_minutes if buffer is None else buffer
    today = now.date()

    day = schedule.for_date(today)
    if day is None or not day.is_open:
        raise BarberClosedError("Barber is closed today according to the schedule.")

    status, day = open_day(schedule, unavailable_dates, today)
    if status == AvailabilityStatus.DATE_UNAVAILABLE:
        raise DateUnavailableError("Barber is marked as unavailable today.")

    open_minutes = time_to_minutes(day.start_time)
    close_minutes = time_to_minutes(day.end_time)
    earliest = max(open_minutes, minutes_of_day(now) + buffer)

    busy = busy_intervals(todays_appointments, today, ignored_statuses=TERMINAL_STATUSES)

    for start in candidate_starts(day, service_duration, step, earliest):
        if is_free(start, service_duration, busy):
            return minutes_to_time(start)

    if busy:
        start = max(earliest, max(end for _, end in busy))
        if start + service_duration <= close_minutes and is_free(start, service_duration, busy):
            logger.debug(f"Walk-in placed after last appointment at {start} minutes")
            return minutes_to_time(start)

    raise NoSlotAvailableError(
        "Could not find an available time slot today for this service."
    )
