"""
Availability engine: bookable start times for a barber, date and service.

Everything here is pure. The only clock is the explicit ``now`` argument,
a wall-clock datetime in the shop timezone.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Sequence, Set, Tuple, Union

from config import settings
from models.appointment import Appointment, AppointmentStatus
from models.results import AvailabilityResult, AvailabilityStatus
from models.schedule import BarberSchedule, DayAvailability, UnavailableDate
from utils.datetime_utils import minutes_of_day, parse_iso_date
from utils.time_labels import minutes_to_time, time_to_minutes

Interval = Tuple[int, int]


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open [start, end) overlap test."""
    return a_start < b_end and a_end > b_start


def blocked_dates(
    unavailable_dates: Iterable[Union[UnavailableDate, date, str]],
) -> Set[date]:
    """Normalize unavailable date entries to a set of calendar dates."""
    result = set()
    for entry in unavailable_dates:
        if isinstance(entry, UnavailableDate):
            result.add(entry.date)
        else:
            result.add(parse_iso_date(entry))
    return result


def busy_intervals(
    appointments: Iterable[Appointment],
    target_date: date,
    ignored_statuses: Iterable[AppointmentStatus] = (AppointmentStatus.CANCELLED,),
) -> List[Interval]:
    """[start, end) minute intervals occupied on a date."""
    ignored = {AppointmentStatus(s) for s in ignored_statuses}
    return [
        (appt.start_minutes, appt.end_minutes)
        for appt in appointments
        if appt.date == target_date and appt.status_enum not in ignored
    ]


def is_free(start: int, duration: int, busy: Sequence[Interval]) -> bool:
    """True when [start, start + duration) touches no busy interval."""
    end = start + duration
    return not any(intervals_overlap(start, end, b_start, b_end) for b_start, b_end in busy)


def open_day(
    schedule: BarberSchedule,
    unavailable_dates: Iterable[Union[UnavailableDate, date, str]],
    target_date: date,
) -> Tuple[AvailabilityStatus, Optional[DayAvailability]]:
    """
    Resolve whether the barber works on a date.

    Returns:
        (OPEN, day) when working, otherwise (DATE_UNAVAILABLE | BARBER_CLOSED, None)
    """
    if target_date in blocked_dates(unavailable_dates):
        return AvailabilityStatus.DATE_UNAVAILABLE, None

    day = schedule.for_date(target_date)
    if day is None or not day.is_open:
        return AvailabilityStatus.BARBER_CLOSED, None

    return AvailabilityStatus.OPEN, day


def candidate_starts(
    day: DayAvailability,
    duration: int,
    step: int,
    earliest: Optional[int] = None,
) -> List[int]:
    """
    Grid of start minutes from the opening time, `step` apart.

    The last candidate ends exactly at closing time at the latest. When
    `earliest` is given, grid points before it are skipped.
    """
    open_minutes = time_to_minutes(day.start_time)
    close_minutes = time_to_minutes(day.end_time)
    starts = []
    start = open_minutes
    while start + duration <= close_minutes:
        if earliest is None or start >= earliest:
            starts.append(start)
        start += step
    return starts


def compute_open_slots(
    schedule: BarberSchedule,
    unavailable_dates: Iterable[Union[UnavailableDate, date, str]],
    target_date: Union[date, str],
    service_duration: int,
    existing_appointments: Iterable[Appointment],
    now: datetime,
    *,
    step: Optional[int] = None,
    buffer: Optional[int] = None,
) -> AvailabilityResult:
    """
    Compute the ordered bookable start times.

    Args:
        schedule: Barber's weekly schedule
        unavailable_dates: Dates the barber blocked
        target_date: Date to search
        service_duration: Service length in minutes
        existing_appointments: Barber's appointments (only those on the date count)
        now: Current wall-clock time in the shop timezone
        step: Candidate spacing in minutes (settings.slot_step_minutes)
        buffer: Minimum advance for same-day starts (settings.booking_buffer_minutes)

    Returns:
        AvailabilityResult; an empty OPEN day reports NO_SLOTS so callers can
        tell "fully booked" apart from closed or blocked dates
    """
    if service_duration <= 0:
        raise ValueError(f"Service duration must be positive, got {service_duration}")

    step = settings.slot_step_minutes if step is None else step
    buffer = settings.booking_buffer_minutes if buffer is None else buffer
    target_date = parse_iso_date(target_date)

    status, day = open_day(schedule, unavailable_dates, target_date)
    if day is None:
        return AvailabilityResult(status=status)

    earliest = None
    if target_date == now.date():
        earliest = minutes_of_day(now) + buffer

    busy = busy_intervals(existing_appointments, target_date)
    slots = [
        minutes_to_time(start)
        for start in candidate_starts(day, service_duration, step, earliest)
        if is_free(start, service_duration, busy)
    ]

    if not slots:
        return AvailabilityResult(status=AvailabilityStatus.NO_SLOTS)
    return AvailabilityResult(status=AvailabilityStatus.OPEN, slots=slots)
