"""
Main entry point for the BarberFlow scheduling worker.
Runs the reminder sweep and logs appointment events until stopped.
"""

import asyncio
import sys

from config import settings
from events import AppointmentEvent, get_event_bus
from scheduler import setup_scheduler, shutdown_scheduler
from utils.logging_config import setup_logging

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="worker.log", log_dir="logs"
)


def log_event(event: AppointmentEvent) -> None:
    """Audit trail of appointment events."""
    appointment = event.appointment
    logger.info(
        f"Event {event.kind}: appointment {appointment.id} "
        f"({appointment.date} {appointment.start_time}) "
        f"{event.previous_status or '-'} -> {appointment.status}"
    )


async def main() -> None:
    """Start the scheduler and wait until cancelled."""
    try:
        settings.validate_all_required()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    stop = asyncio.Event()
    try:
        logger.info(f"Starting scheduling worker ({settings.environment})...")
        get_event_bus().subscribe(log_event)
        setup_scheduler()
        await stop.wait()
    except asyncio.CancelledError:
        logger.info("Worker cancelled")
    finally:
        logger.info("Shutting down...")
        shutdown_scheduler()
        await get_event_bus().drain()
        logger.info("Worker shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)
