"""
Barber-side management: weekly schedule, blocked dates, services and the
availability flags on the barber's profile.
"""

from datetime import date, datetime
from typing import Callable, List, Optional, Union

from db import SupabaseRepository, get_repository
from events import AppointmentEvent, AppointmentEventKind, EventBus, get_event_bus
from models.barber import BarberProfile
from models.results import ShiftPlan
from models.schedule import BarberSchedule, DayAvailability, UnavailableDate
from models.service import BarberService, BarberServiceCreate, BarberServiceUpdate
from scheduling.shifting import plan_shift
from utils.datetime_utils import appointment_timestamp, ensure_aware, local_now, parse_iso_date
from utils.exceptions import BarberNotFoundError, ServiceNotFoundError, ValidationError
from utils.logging_config import get_logger
from utils.time_labels import time_to_minutes

logger = get_logger(__name__)


def validate_schedule(schedule: BarberSchedule) -> None:
    """
    Check that every open day closes after it opens.

    Raises:
        ValidationError: On an open day with start >= end
    """
    for day in schedule.days:
        if day.is_open and time_to_minutes(day.start_time) >= time_to_minutes(day.end_time):
            raise ValidationError(
                f"{day.day}: closing time must be after opening time"
            )


class BarberAdminService:
    """Operations a barber performs on their own profile and catalogue."""

    def __init__(
        self,
        repository: Optional[SupabaseRepository] = None,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository or get_repository()
        self.event_bus = event_bus or get_event_bus()
        self.clock = clock or local_now

    # ========== Schedule ==========

    async def get_schedule(self, barber_id: str) -> BarberSchedule:
        return await self.repository.get_schedule(barber_id)

    async def save_schedule(
        self, barber_id: str, days: List[DayAvailability]
    ) -> BarberSchedule:
        """Replace the weekly schedule. Existing appointments are untouched."""
        schedule = BarberSchedule(barber_id=barber_id, days=days)
        validate_schedule(schedule)
        saved = await self.repository.save_schedule(schedule)
        logger.info(f"Saved weekly schedule for barber {barber_id}")
        return saved

    async def list_unavailable_dates(self, barber_id: str) -> List[UnavailableDate]:
        return await self.repository.list_unavailable_dates(barber_id)

    async def block_date(
        self, barber_id: str, target_date: Union[date, str], reason: Optional[str] = None
    ) -> UnavailableDate:
        """Close a whole date regardless of the weekly schedule."""
        target_date = parse_iso_date(target_date)
        if target_date < self.clock().date():
            raise ValidationError("Cannot block a date in the past")

        entry = UnavailableDate(
            barber_id=barber_id,
            date=target_date,
            reason=reason.strip() if reason and reason.strip() else None,
        )
        saved = await self.repository.add_unavailable_date(entry)
        logger.info(f"Barber {barber_id} blocked {target_date}")
        return saved

    async def unblock_date(self, barber_id: str, target_date: Union[date, str]) -> bool:
        return await self.repository.remove_unavailable_date(
            barber_id, parse_iso_date(target_date)
        )

    # ========== Services ==========

    async def list_services(self, barber_id: str) -> List[BarberService]:
        return await self.repository.list_services(barber_id)

    async def add_service(
        self, barber_id: str, name: str, price: float, duration_minutes: int
    ) -> BarberService:
        service = await self.repository.create_service(
            BarberServiceCreate(
                barber_id=barber_id,
                name=name.strip(),
                price=price,
                duration_minutes=duration_minutes,
            )
        )
        logger.info(f"Barber {barber_id} added service {service.id} ({service.name})")
        return service

    async def update_service(
        self, service_id: str, update: BarberServiceUpdate
    ) -> BarberService:
        """Edit a service. Booked appointments keep their price and times."""
        service = await self.repository.update_service(service_id, update)
        if service is None:
            raise ServiceNotFoundError(f"Service {service_id} not found")
        return service

    async def delete_service(self, service_id: str) -> None:
        if not await self.repository.delete_service(service_id):
            raise ServiceNotFoundError(f"Service {service_id} not found")

    # ========== Availability flags ==========

    async def _get_profile(self, barber_id: str) -> BarberProfile:
        profile = await self.repository.get_barber_profile(barber_id)
        if profile is None:
            raise BarberNotFoundError(f"Barber {barber_id} not found")
        return profile

    async def set_accepting_bookings(self, barber_id: str, accepting: bool) -> BarberProfile:
        """Pause or resume online bookings. Walk-ins are unaffected."""
        profile = await self.repository.update_barber_flags(
            barber_id, is_accepting_bookings=accepting
        )
        if profile is None:
            raise BarberNotFoundError(f"Barber {barber_id} not found")
        logger.info(f"Barber {barber_id} accepting bookings: {accepting}")
        return profile

    async def set_temporarily_unavailable(
        self, barber_id: str, unavailable: bool
    ) -> ShiftPlan:
        """
        Toggle the "stepped away" flag.

        Coming back after being away pushes the rest of today's
        appointments back by the time spent away.

        Returns:
            The applied ShiftPlan (empty unless the barber just came back)
        """
        profile = await self._get_profile(barber_id)
        now = self.clock()

        if unavailable:
            if not profile.is_temporarily_unavailable:
                await self.repository.update_barber_flags(
                    barber_id, is_temporarily_unavailable=True, unavailable_since=now
                )
                logger.info(f"Barber {barber_id} is temporarily unavailable")
            return ShiftPlan()

        await self.repository.update_barber_flags(
            barber_id, is_temporarily_unavailable=False, unavailable_since=None
        )
        if not profile.is_temporarily_unavailable or profile.unavailable_since is None:
            return ShiftPlan()

        logger.info(f"Barber {barber_id} is available again")
        return await self.shift_after_busy_period(
            barber_id, ensure_aware(profile.unavailable_since), now
        )

    async def shift_after_busy_period(
        self, barber_id: str, busy_since: datetime, busy_until: datetime
    ) -> ShiftPlan:
        """Move today's remaining appointments back and notify subscribers."""
        today = self.clock().date()
        schedule = await self.repository.get_schedule(barber_id)
        unavailable = await self.repository.list_unavailable_dates(barber_id)
        todays = await self.repository.get_barber_appointments(barber_id, today)

        plan = plan_shift(schedule, unavailable, todays, busy_since, busy_until)
        by_id = {appt.id: appt for appt in todays}

        for moved in plan.shifted:
            original = by_id[moved.appointment_id]
            updated = await self.repository.update_appointment(
                moved.appointment_id,
                {
                    "start_time": moved.start_time,
                    "end_time": moved.end_time,
                    "appointment_timestamp": appointment_timestamp(
                        original.date, moved.start_time
                    ),
                    "updated_at": busy_until,
                },
            )
            self.event_bus.publish(
                AppointmentEvent(
                    kind=AppointmentEventKind.SHIFTED,
                    appointment=updated,
                    previous_status=original.status_enum,
                )
            )

        logger.info(
            f"Shifted {len(plan.shifted)} appointment(s) by {plan.busy_minutes} min "
            f"for barber {barber_id}; {len(plan.unplaceable)} could not be moved"
        )
        return plan
