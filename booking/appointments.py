"""
Appointment orchestration: reads state from the repository, asks the pure
scheduling rules for a decision, writes it back and publishes an event.

Nothing here is transactional. Two bookings racing for the same slot can
both pass the availability check; state changes are last-write-wins.
"""

from datetime import date, datetime
from typing import Callable, List, Optional, Union

from db import SupabaseRepository, get_repository
from events import AppointmentEvent, AppointmentEventKind, EventBus, get_event_bus
from models.appointment import (
    OPEN_STATUSES,
    ActorRole,
    Appointment,
    AppointmentAction,
    AppointmentCreate,
    AppointmentStatus,
)
from models.results import (
    AgendaEntry,
    AvailabilityResult,
    AvailabilityStatus,
    BookingOutcome,
    QueueSnapshot,
)
from models.service import BarberService
from scheduling.agenda import build_agenda
from scheduling.availability import compute_open_slots
from scheduling.booking_limits import ensure_can_book
from scheduling.queue import estimate_queue
from scheduling.state_machine import decide_transition
from scheduling.walk_in import find_walk_in_slot
from utils.datetime_utils import appointment_timestamp, local_now, parse_iso_date, week_bounds
from utils.exceptions import (
    AppointmentNotFoundError,
    BarberClosedError,
    BarberNotFoundError,
    DateUnavailableError,
    NoSlotAvailableError,
    NotAcceptingBookingsError,
    ServiceNotFoundError,
    SlotNotAvailableError,
    StorageFailureError,
    UnauthorizedActorError,
)
from utils.logging_config import get_logger
from utils.time_labels import add_minutes, minutes_to_time, time_to_minutes

logger = get_logger(__name__)

Clock = Callable[[], datetime]


class AppointmentService:
    """Booking, walk-in and lifecycle operations for appointments."""

    def __init__(
        self,
        repository: Optional[SupabaseRepository] = None,
        event_bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
    ):
        self.repository = repository or get_repository()
        self.event_bus = event_bus or get_event_bus()
        self.clock = clock or local_now

    # ========== Lookups ==========

    async def _get_service(self, service_id: str) -> BarberService:
        service = await self.repository.get_service(service_id)
        if service is None:
            raise ServiceNotFoundError(f"Service {service_id} not found")
        return service

    async def _get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await self.repository.get_appointment(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def _publish(
        self,
        kind: AppointmentEventKind,
        appointment: Appointment,
        previous_status: Optional[AppointmentStatus] = None,
    ) -> None:
        self.event_bus.publish(
            AppointmentEvent(
                kind=kind, appointment=appointment, previous_status=previous_status
            )
        )

    # ========== Availability ==========

    async def get_open_slots(
        self, barber_id: str, service_id: str, target_date: Union[date, str]
    ) -> AvailabilityResult:
        """Bookable start times for a service on a date."""
        service = await self._get_service(service_id)
        return await self._open_slots(barber_id, service, parse_iso_date(target_date))

    async def _open_slots(
        self, barber_id: str, service: BarberService, target_date: date
    ) -> AvailabilityResult:
        schedule = await self.repository.get_schedule(barber_id)
        unavailable = await self.repository.list_unavailable_dates(barber_id)
        existing = await self.repository.get_barber_appointments(barber_id, target_date)

        now = self.clock()
        if target_date < now.date():
            return AvailabilityResult(status=AvailabilityStatus.NO_SLOTS)

        return compute_open_slots(
            schedule,
            unavailable,
            target_date,
            service.duration_minutes,
            existing,
            now,
        )

    # ========== Booking ==========

    async def book_appointment(
        self,
        customer_id: str,
        customer_name: str,
        barber_id: str,
        service_id: str,
        target_date: Union[date, str],
        start_time: str,
    ) -> BookingOutcome:
        """
        Book an online appointment for a customer.

        Returns:
            BookingOutcome with the stored appointment, plus a queue snapshot
            when the booking is for today

        Raises:
            NotAcceptingBookingsError, BarberClosedError, DateUnavailableError,
            NoSlotAvailableError, SlotNotAvailableError,
            DailyLimitExceededError, WeeklyLimitExceededError,
            StorageFailureError
        """
        target_date = parse_iso_date(target_date)
        start_label = minutes_to_time(time_to_minutes(start_time))

        barber = await self.repository.get_barber_profile(barber_id)
        if barber is None:
            raise BarberNotFoundError(f"Barber {barber_id} not found")
        if not barber.is_accepting_bookings:
            raise NotAcceptingBookingsError(
                f"{barber.display_name} is not accepting new bookings right now."
            )

        service = await self._get_service(service_id)
        availability = await self._open_slots(barber_id, service, target_date)

        if availability.status == AvailabilityStatus.BARBER_CLOSED:
            raise BarberClosedError("The barber does not work on this day.")
        if availability.status == AvailabilityStatus.DATE_UNAVAILABLE:
            raise DateUnavailableError("The barber is unavailable on this date.")
        if not availability.slots:
            raise NoSlotAvailableError("No available slots for this service on this date.")
        if start_label not in availability.slots:
            raise SlotNotAvailableError(f"{start_label} is no longer available.")

        monday, sunday = week_bounds(target_date)
        customer_appointments = await self.repository.get_customer_appointments(
            customer_id, monday, sunday
        )
        ensure_can_book(customer_appointments, target_date)

        appointment = await self.repository.create_appointment(
            AppointmentCreate(
                barber_id=barber_id,
                barber_name=barber.display_name,
                customer_id=customer_id,
                customer_name=customer_name,
                service_id=service.id,
                service_name=service.name,
                price=service.price,
                date=target_date,
                start_time=start_label,
                end_time=add_minutes(start_label, service.duration_minutes),
                appointment_timestamp=appointment_timestamp(target_date, start_label),
                status=AppointmentStatus.UPCOMING,
            )
        )
        logger.info(
            f"Booked appointment {appointment.id}: {customer_id} with {barber_id} "
            f"on {target_date} at {start_label}"
        )
        self._publish(AppointmentEventKind.CREATED, appointment)

        queue = None
        if target_date == self.clock().date():
            queue = await self._queue_snapshot_or_none(appointment)

        return BookingOutcome(appointment=appointment, queue=queue)

    async def get_queue_snapshot(self, appointment: Appointment) -> QueueSnapshot:
        """Queue position and wait for a same-day appointment."""
        today = appointment.date
        todays_open = await self.repository.get_barber_appointments_by_status(
            appointment.barber_id, OPEN_STATUSES, today, today
        )
        services = await self.repository.list_services(appointment.barber_id)
        durations = {s.id: s.duration_minutes for s in services if s.id}
        return estimate_queue(todays_open, appointment, durations, self.clock())

    async def _queue_snapshot_or_none(self, appointment: Appointment) -> Optional[QueueSnapshot]:
        # The booking is already stored; a failed queue read must not undo it
        try:
            return await self.get_queue_snapshot(appointment)
        except StorageFailureError as e:
            logger.warning(
                f"Queue estimate unavailable for appointment {appointment.id}: {e}"
            )
            return None

    # ========== Walk-ins ==========

    async def add_walk_in(
        self, barber_id: str, service_id: str, customer_name: str
    ) -> Appointment:
        """
        Place a walk-in at the earliest free slot today.

        Walk-ins skip the booking limits and the accepting-bookings flag and
        start in progress with both arrival timestamps filled.

        Raises:
            BarberClosedError, DateUnavailableError, NoSlotAvailableError,
            StorageFailureError
        """
        now = self.clock()
        today = now.date()

        service = await self._get_service(service_id)
        barber = await self.repository.get_barber_profile(barber_id)
        schedule = await self.repository.get_schedule(barber_id)
        unavailable = await self.repository.list_unavailable_dates(barber_id)
        todays = await self.repository.get_barber_appointments(barber_id, today)

        start_label = find_walk_in_slot(
            schedule, unavailable, todays, service.duration_minutes, now
        )

        appointment = await self.repository.create_appointment(
            AppointmentCreate(
                barber_id=barber_id,
                barber_name=barber.display_name if barber else "",
                customer_id=None,
                customer_name=customer_name,
                service_id=service.id,
                service_name=service.name,
                price=service.price,
                date=today,
                start_time=start_label,
                end_time=add_minutes(start_label, service.duration_minutes),
                appointment_timestamp=appointment_timestamp(today, start_label),
                status=AppointmentStatus.IN_PROGRESS,
                customer_checked_in_at=now,
                barber_checked_in_at=now,
                service_actually_started_at=now,
            )
        )
        logger.info(f"Walk-in {appointment.id} for {customer_name} at {start_label}")
        self._publish(AppointmentEventKind.CREATED, appointment)
        return appointment

    # ========== Lifecycle ==========

    @staticmethod
    def _authorize(appointment: Appointment, actor_id: str, role: ActorRole) -> None:
        role = ActorRole(role)
        party = appointment.barber_id if role == ActorRole.BARBER else appointment.customer_id
        if party is None or party != actor_id:
            raise UnauthorizedActorError(
                f"User {actor_id} is not the {role.value} of appointment {appointment.id}"
            )

    async def perform_action(
        self,
        appointment_id: str,
        action: AppointmentAction,
        actor_id: str,
        role: ActorRole,
    ) -> Appointment:
        """
        Apply a barber or customer action through the state machine.

        Raises:
            AppointmentNotFoundError, UnauthorizedActorError,
            InvalidTransitionError, CancellationTooLateError,
            NoShowTooEarlyError, StorageFailureError
        """
        appointment = await self._get_appointment(appointment_id)
        self._authorize(appointment, actor_id, role)

        result = decide_transition(appointment, action, role, self.clock())
        updated = await self.repository.update_appointment(appointment_id, result.to_patch())

        logger.info(
            f"Appointment {appointment_id}: {result.previous_status} -> {result.status} "
            f"({AppointmentAction(action).value} by {ActorRole(role).value})"
        )

        kind = (
            AppointmentEventKind.CANCELLED
            if updated.status_enum == AppointmentStatus.CANCELLED
            else AppointmentEventKind.TRANSITIONED
        )
        self._publish(kind, updated, AppointmentStatus(result.previous_status))
        return updated

    async def cancel_appointment(
        self, appointment_id: str, actor_id: str, role: ActorRole
    ) -> Appointment:
        return await self.perform_action(appointment_id, AppointmentAction.CANCEL, actor_id, role)

    async def mark_no_show(self, appointment_id: str, barber_id: str) -> Appointment:
        return await self.perform_action(
            appointment_id, AppointmentAction.MARK_NO_SHOW, barber_id, ActorRole.BARBER
        )

    # ========== Views ==========

    async def get_barber_agenda(self, barber_id: str) -> List[AgendaEntry]:
        """Today's appointments with stale and next-up flags."""
        now = self.clock()
        todays = await self.repository.get_barber_appointments(barber_id, now.date())
        return build_agenda(todays, now.date(), now)
