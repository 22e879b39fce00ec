"""
Push today's remaining appointments back after a barber's busy period.

Appointments are re-placed in ascending original start order. Each new
start goes through the availability rules (opening hours, no overlap with
untouched or already moved appointments); when the exact pushed-back start
collides, the next free grid slot after it is used. An appointment that
fits nowhere keeps its original slot, and that slot is reserved before the
others are placed again.
"""

from datetime import date, datetime
from typing import Iterable, List, Optional, Set, Tuple, Union

from config import settings
from models.appointment import PRE_SERVICE_STATUSES, Appointment
from models.results import ShiftedAppointment, ShiftPlan
from models.schedule import BarberSchedule, DayAvailability, UnavailableDate
from scheduling.availability import busy_intervals, candidate_starts, is_free, open_day
from utils.datetime_utils import ensure_aware
from utils.logging_config import get_logger
from utils.time_labels import minutes_to_time, time_to_minutes

logger = get_logger(__name__)


def affected_appointments(
    todays_appointments: Iterable[Appointment],
    busy_since: datetime,
) -> List[Appointment]:
    """Not-yet-started appointments scheduled at or after the busy start."""
    since = ensure_aware(busy_since)
    affected = [
        appt
        for appt in todays_appointments
        if appt.id
        and appt.status_enum in PRE_SERVICE_STATUSES
        and ensure_aware(appt.appointment_timestamp) >= since
    ]
    return sorted(affected, key=lambda appt: appt.start_minutes)


def plan_shift(
    schedule: BarberSchedule,
    unavailable_dates: Iterable[Union[UnavailableDate, date, str]],
    todays_appointments: Iterable[Appointment],
    busy_since: datetime,
    busy_until: datetime,
    *,
    step: Optional[int] = None,
) -> ShiftPlan:
    """
    Compute new start times for appointments delayed by a busy period.

    Args:
        schedule: Barber's weekly schedule
        unavailable_dates: Dates the barber blocked
        todays_appointments: Barber's appointments for the day being shifted
        busy_since: When the barber became unavailable
        busy_until: When the barber became available again
        step: Grid spacing for fallback starts (settings.slot_step_minutes)

    Returns:
        ShiftPlan; appointments that cannot fit before closing are listed as
        unplaceable and keep their current times
    """
    step = settings.slot_step_minutes if step is None else step
    busy_minutes = int((ensure_aware(busy_until) - ensure_aware(busy_since)).total_seconds() // 60)
    plan = ShiftPlan(busy_minutes=max(0, busy_minutes))
    if busy_minutes <= 0:
        return plan

    todays_appointments = list(todays_appointments)
    affected = affected_appointments(todays_appointments, busy_since)
    if not affected:
        return plan

    target_date = affected[0].date
    _, day = open_day(schedule, unavailable_dates, target_date)
    affected_ids = {appt.id for appt in affected}
    untouched = busy_intervals(
        [appt for appt in todays_appointments if appt.id not in affected_ids],
        target_date,
    )

    # Appointments that cannot move keep their slot, which can push others out.
    # Repeat with those slots reserved until the unplaceable set settles.
    pinned: Set[str] = set()
    while True:
        shifted, unplaceable = _place(affected, untouched, pinned, day, busy_minutes, step)
        if set(unplaceable) <= pinned:
            break
        pinned.update(unplaceable)

    for appt_id in unplaceable:
        logger.warning(f"No room to shift appointment {appt_id}; keeping its current time")
    plan.shifted = shifted
    plan.unplaceable = unplaceable
    return plan


def _place(
    affected: List[Appointment],
    untouched: List[Tuple[int, int]],
    pinned: Set[str],
    day: Optional[DayAvailability],
    busy_minutes: int,
    step: int,
) -> Tuple[List[ShiftedAppointment], List[str]]:
    occupied = list(untouched)
    occupied.extend(
        (appt.start_minutes, appt.end_minutes) for appt in affected if appt.id in pinned
    )
    shifted: List[ShiftedAppointment] = []
    unplaceable: List[str] = []

    for appt in affected:
        if appt.id in pinned:
            unplaceable.append(appt.id)
            continue

        duration = appt.duration_minutes
        desired = appt.start_minutes + busy_minutes
        new_start = None

        if day is not None:
            close_minutes = time_to_minutes(day.end_time)
            if desired + duration <= close_minutes and is_free(desired, duration, occupied):
                new_start = desired
            else:
                new_start = next(
                    (
                        start
                        for start in candidate_starts(day, duration, step, desired)
                        if is_free(start, duration, occupied)
                    ),
                    None,
                )

        if new_start is None:
            unplaceable.append(appt.id)
            continue

        occupied.append((new_start, new_start + duration))
        shifted.append(
            ShiftedAppointment(
                appointment_id=appt.id,
                original_start_time=appt.start_time,
                start_time=minutes_to_time(new_start),
                end_time=minutes_to_time(new_start + duration),
            )
        )

    return shifted, unplaceable
