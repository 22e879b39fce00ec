"""Barber's day view with derived attention flags."""

from datetime import date, datetime
from typing import Iterable, List, Optional

from models.appointment import PRE_SERVICE_STATUSES, Appointment
from models.results import AgendaEntry
from scheduling.state_machine import is_stale


def build_agenda(
    appointments: Iterable[Appointment],
    today: date,
    now: datetime,
    *,
    stale_threshold_minutes: Optional[int] = None,
) -> List[AgendaEntry]:
    """
    Today's appointments in start order.

    The first appointment that has not started yet is the "next up" candidate.
    """
    todays = sorted(
        (appt for appt in appointments if appt.date == today),
        key=lambda appt: appt.start_minutes,
    )

    entries = []
    next_marked = False
    for appt in todays:
        is_next = not next_marked and appt.status_enum in PRE_SERVICE_STATUSES
        next_marked = next_marked or is_next
        entries.append(
            AgendaEntry(
                appointment=appt,
                is_stale=is_stale(appt, now, stale_threshold_minutes),
                is_next_candidate=is_next,
            )
        )
    return entries
