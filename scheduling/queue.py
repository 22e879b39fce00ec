"""
Same-day queue estimate shown right after a booking.
"""

from datetime import datetime
from typing import Iterable, List, Mapping, Optional

from config import settings
from models.appointment import OPEN_STATUSES, Appointment, AppointmentStatus
from models.results import QueueSnapshot
from utils.datetime_utils import ensure_aware


def _same_appointment(a: Appointment, b: Appointment) -> bool:
    if a.id is not None and b.id is not None:
        return a.id == b.id
    return a is b


def service_duration(
    appointment: Appointment,
    duration_lookup: Mapping[str, int],
    default_duration: int,
) -> int:
    """Duration from the service catalogue, else the booked span, else the default."""
    duration = duration_lookup.get(appointment.service_id)
    if duration:
        return duration
    if appointment.duration_minutes > 0:
        return appointment.duration_minutes
    return default_duration


def _remaining_minutes(appointment: Appointment, duration: int, now: datetime) -> int:
    started = appointment.service_actually_started_at or appointment.appointment_timestamp
    elapsed = int((ensure_aware(now) - ensure_aware(started)).total_seconds() // 60)
    return max(0, duration - max(0, elapsed))


def estimate_queue(
    todays_open_appointments: Iterable[Appointment],
    booked: Appointment,
    duration_lookup: Mapping[str, int],
    now: datetime,
    *,
    default_duration: Optional[int] = None,
) -> QueueSnapshot:
    """
    Position and estimated wait for a freshly booked same-day appointment.

    Args:
        todays_open_appointments: Barber's appointments today
        booked: The appointment just written
        duration_lookup: service_id -> duration in minutes
        now: Current time
        default_duration: Fallback duration (settings.default_service_duration_minutes)

    Returns:
        QueueSnapshot
    """
    if booked.status_enum == AppointmentStatus.IN_PROGRESS:
        return QueueSnapshot(position=1, estimated_wait_minutes=0, is_next=False)

    default_duration = (
        settings.default_service_duration_minutes
        if default_duration is None
        else default_duration
    )

    queue: List[Appointment] = [
        appt for appt in todays_open_appointments if appt.status_enum in OPEN_STATUSES
    ]
    if not any(_same_appointment(appt, booked) for appt in queue):
        queue.append(booked)
    queue.sort(key=lambda appt: appt.start_minutes)

    index = next(i for i, appt in enumerate(queue) if _same_appointment(appt, booked))

    wait = 0
    for appt in queue[:index]:
        duration = service_duration(appt, duration_lookup, default_duration)
        if appt.status_enum == AppointmentStatus.IN_PROGRESS:
            wait += _remaining_minutes(appt, duration, now)
        else:
            wait += duration

    in_progress = [
        appt
        for appt in queue
        if appt.status_enum == AppointmentStatus.IN_PROGRESS
        and not _same_appointment(appt, booked)
    ]
    currently_serving = in_progress[0].customer_name if in_progress else None

    if index == 0:
        is_next = not in_progress
    else:
        is_next = queue[index - 1].status_enum == AppointmentStatus.IN_PROGRESS

    return QueueSnapshot(
        position=index + 1,
        estimated_wait_minutes=wait,
        currently_serving=currently_serving,
        is_next=is_next,
    )
