"""
Scheduler for appointment reminders using APScheduler.

Every few minutes, upcoming appointments starting about
`reminder_minutes_before` from now get a `reminder-due` event for the
notification collaborator, and are marked so they are never picked twice.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from db import SupabaseRepository, get_repository
from events import AppointmentEvent, AppointmentEventKind, EventBus, get_event_bus
from models.appointment import Appointment
from utils.constants import REMINDER_SKIPPED_WALK_IN
from utils.datetime_utils import utc_now
from utils.exceptions import DatabaseError
from utils.logging_config import setup_logging

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="scheduler.log", log_dir="logs"
)

scheduler = AsyncIOScheduler(timezone=settings.timezone)


async def find_due_reminders(
    repository: SupabaseRepository, now: Optional[datetime] = None
) -> List[Appointment]:
    """
    Appointments whose start falls inside the reminder window.

    Args:
        repository: Storage to query
        now: Current time (defaults to UTC now)

    Returns:
        Upcoming appointments with no reminder sent yet
    """
    now = now or utc_now()
    window_start = now + timedelta(minutes=settings.reminder_minutes_before)
    window_end = window_start + timedelta(minutes=settings.reminder_window_minutes)
    return await repository.get_appointments_for_reminder(window_start, window_end)


async def send_due_reminders(
    repository: Optional[SupabaseRepository] = None,
    event_bus: Optional[EventBus] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    Publish reminder events for due appointments.

    Returns:
        Number of reminders published
    """
    repository = repository or get_repository()
    event_bus = event_bus or get_event_bus()

    try:
        appointments = await find_due_reminders(repository, now)
    except DatabaseError as e:
        logger.error(f"Database error checking reminders: {e}", exc_info=True)
        return 0

    if not appointments:
        logger.debug("No appointments require reminders at this time")
        return 0

    logger.info(f"Processing {len(appointments)} appointments for reminders")

    sent_count = 0
    skipped_count = 0

    for appointment in appointments:
        if not appointment.id:
            logger.warning(f"Appointment missing ID, skipping: {appointment}")
            skipped_count += 1
            continue

        try:
            if appointment.is_walk_in:
                await repository.update_appointment(
                    appointment.id,
                    {"reminder_sent": True, "reminder_skipped_reason": REMINDER_SKIPPED_WALK_IN},
                )
                skipped_count += 1
                continue

            updated = await repository.update_appointment(
                appointment.id, {"reminder_sent": True}
            )
        except DatabaseError as e:
            logger.error(
                f"Failed to mark reminder for appointment {appointment.id}: {e}",
                exc_info=True,
            )
            skipped_count += 1
            continue

        event_bus.publish(
            AppointmentEvent(kind=AppointmentEventKind.REMINDER_DUE, appointment=updated)
        )
        sent_count += 1

    logger.info(
        f"Reminder processing complete: {sent_count} sent, {skipped_count} skipped"
    )
    return sent_count


def setup_scheduler() -> None:
    """Register the reminder sweep and start the scheduler."""
    scheduler.add_job(
        send_due_reminders,
        trigger=IntervalTrigger(minutes=settings.reminder_window_minutes),
        id="send_due_reminders",
        name="Publish reminders for appointments starting soon",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    """Shutdown the scheduler."""
    if scheduler.running:
        scheduler.shutdown()
    logger.info("Scheduler stopped")
