"""
Unit tests for appointment orchestration.
Repository and event bus are mocked; scheduling rules run for real.
"""

from datetime import timedelta

import pytest

from booking.appointments import AppointmentService
from events import AppointmentEventKind
from factories import BARBER_ID, CUSTOMER_ID, MONDAY, build_appointment, local
from models.appointment import ActorRole, AppointmentAction, AppointmentStatus
from models.barber import BarberProfile
from models.results import AvailabilityStatus
from models.service import BarberService
from utils.exceptions import (
    BarberClosedError,
    CancellationTooLateError,
    DailyLimitExceededError,
    InvalidTransitionError,
    NotAcceptingBookingsError,
    ServiceNotFoundError,
    SlotNotAvailableError,
    StorageFailureError,
    UnauthorizedActorError,
)

S = AppointmentStatus
CUT = BarberService(id="svc-cut", barber_id=BARBER_ID, name="Classic cut", price=800, duration_minutes=30)


def _echo_created(create):
    data = create.model_dump()
    return build_appointment(
        start_time=data["start_time"],
        duration=30,
        status=data["status"],
        day=data["date"],
        appointment_id="new-appt",
        customer_id=data["customer_id"],
        customer_name=data["customer_name"],
        customer_checked_in_at=data["customer_checked_in_at"],
        barber_checked_in_at=data["barber_checked_in_at"],
        service_actually_started_at=data["service_actually_started_at"],
    )


@pytest.fixture
def repo(mock_repository):
    mock_repository.get_service.return_value = CUT
    mock_repository.get_barber_profile.return_value = BarberProfile(
        id=BARBER_ID, first_name="Karim", last_name="Benali"
    )
    mock_repository.create_appointment.side_effect = _echo_created
    mock_repository.list_services.return_value = [CUT]
    return mock_repository


def make_service(repo, event_bus, now):
    return AppointmentService(repository=repo, event_bus=event_bus, clock=lambda: now)


@pytest.mark.asyncio
async def test_get_open_slots(repo, mock_event_bus):
    """Test slots are computed from repository data."""
    service = make_service(repo, mock_event_bus, local(MONDAY, 16, 0))

    result = await service.get_open_slots(BARBER_ID, "svc-cut", MONDAY)

    assert result.status == AvailabilityStatus.OPEN
    assert result.slots == ["04:15 PM", "04:30 PM"]
    repo.get_barber_appointments.assert_awaited_once_with(BARBER_ID, MONDAY)


@pytest.mark.asyncio
async def test_get_open_slots_unknown_service(repo, mock_event_bus):
    """Test an unknown service is reported."""
    repo.get_service.return_value = None
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(ServiceNotFoundError):
        await service.get_open_slots(BARBER_ID, "missing", MONDAY)


@pytest.mark.asyncio
async def test_book_future_appointment(repo, mock_event_bus):
    """Test a booking on a later day is stored upcoming without queue info."""
    service = make_service(repo, mock_event_bus, local(MONDAY - timedelta(days=1), 12, 0))

    outcome = await service.book_appointment(
        CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", "2024-05-06", "10:00 am"
    )

    create = repo.create_appointment.call_args[0][0]
    assert create.status == S.UPCOMING
    assert create.start_time == "10:00 AM"
    assert create.end_time == "10:30 AM"
    assert create.price == 800
    assert create.barber_name == "Karim Benali"
    assert create.appointment_timestamp == local(MONDAY, 10, 0)
    assert outcome.queue is None
    event = mock_event_bus.publish.call_args[0][0]
    assert event.kind == AppointmentEventKind.CREATED


@pytest.mark.asyncio
async def test_same_day_booking_includes_queue(repo, mock_event_bus):
    """Test a same-day booking returns a queue snapshot."""
    ahead = build_appointment("10:00 AM", appointment_id="ahead")
    repo.get_barber_appointments.return_value = [ahead]
    repo.get_barber_appointments_by_status.return_value = [ahead]
    service = make_service(repo, mock_event_bus, local(MONDAY, 9, 0))

    outcome = await service.book_appointment(
        CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY, "10:30 AM"
    )

    assert outcome.queue is not None
    assert outcome.queue.position == 2
    assert outcome.queue.estimated_wait_minutes == 30


@pytest.mark.asyncio
async def test_queue_failure_keeps_booking(repo, mock_event_bus):
    """Test a failed queue read falls back to a plain confirmation."""
    repo.get_barber_appointments_by_status.side_effect = StorageFailureError("timeout")
    service = make_service(repo, mock_event_bus, local(MONDAY, 9, 0))

    outcome = await service.book_appointment(
        CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY, "10:30 AM"
    )

    assert outcome.appointment.id == "new-appt"
    assert outcome.queue is None
    repo.update_appointment.assert_not_called()


@pytest.mark.asyncio
async def test_booking_rejected_when_not_accepting(repo, mock_event_bus):
    """Test the accepting-bookings flag gates online bookings."""
    repo.get_barber_profile.return_value = BarberProfile(id=BARBER_ID, is_accepting_bookings=False)
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(NotAcceptingBookingsError):
        await service.book_appointment(CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY, "10:00 AM")
    repo.create_appointment.assert_not_called()


@pytest.mark.asyncio
async def test_booking_taken_slot_rejected(repo, mock_event_bus):
    """Test a start that is not an open slot is rejected."""
    repo.get_barber_appointments.return_value = [build_appointment("10:00 AM")]
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(SlotNotAvailableError):
        await service.book_appointment(CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY, "10:15 AM")


@pytest.mark.asyncio
async def test_booking_on_closed_day(repo, mock_event_bus):
    """Test booking on a closed weekday reports barber closed."""
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(BarberClosedError):
        await service.book_appointment(
            CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY + timedelta(days=6), "10:00 AM"
        )


@pytest.mark.asyncio
async def test_booking_daily_limit(repo, mock_event_bus):
    """Test the customer's other bookings are checked across barbers."""
    repo.get_customer_appointments.return_value = [
        build_appointment("03:00 PM", barber_id="other-barber", appointment_id="other")
    ]
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(DailyLimitExceededError):
        await service.book_appointment(CUSTOMER_ID, "Yacine", BARBER_ID, "svc-cut", MONDAY, "10:00 AM")
    repo.get_customer_appointments.assert_awaited_once_with(
        CUSTOMER_ID, MONDAY, MONDAY + timedelta(days=6)
    )


@pytest.mark.asyncio
async def test_add_walk_in(repo, mock_event_bus):
    """Test walk-ins start in progress with arrival stamps filled."""
    repo.get_barber_appointments.return_value = [build_appointment("10:00 AM")]
    now = local(MONDAY, 9, 50)
    service = make_service(repo, mock_event_bus, now)

    appointment = await service.add_walk_in(BARBER_ID, "svc-cut", "Walk-in Sami")

    create = repo.create_appointment.call_args[0][0]
    assert create.customer_id is None
    assert create.status == S.IN_PROGRESS
    assert create.start_time == "10:30 AM"
    assert create.customer_checked_in_at == now
    assert create.barber_checked_in_at == now
    assert appointment.is_walk_in


@pytest.mark.asyncio
async def test_perform_action_writes_patch_and_publishes(repo, mock_event_bus):
    """Test a check-in is persisted and announced."""
    appt = build_appointment("10:00 AM")
    repo.get_appointment.return_value = appt
    repo.update_appointment.return_value = appt.model_copy(
        update={"status": S.CUSTOMER_INITIATED_CHECK_IN}
    )
    now = local(MONDAY, 9, 58)
    service = make_service(repo, mock_event_bus, now)

    updated = await service.perform_action("appt-1", AppointmentAction.CHECK_IN, CUSTOMER_ID, ActorRole.CUSTOMER)

    assert updated.status_enum == S.CUSTOMER_INITIATED_CHECK_IN
    patch = repo.update_appointment.call_args[0][1]
    assert patch == {
        "status": "customer-initiated-check-in",
        "updated_at": now,
        "customer_checked_in_at": now,
    }
    event = mock_event_bus.publish.call_args[0][0]
    assert event.kind == AppointmentEventKind.TRANSITIONED
    assert event.previous_status == S.UPCOMING


@pytest.mark.asyncio
async def test_perform_action_rejects_other_customer(repo, mock_event_bus):
    """Test only the appointment's parties may act."""
    repo.get_appointment.return_value = build_appointment()
    service = make_service(repo, mock_event_bus, local(MONDAY, 9, 58))

    with pytest.raises(UnauthorizedActorError):
        await service.perform_action("appt-1", AppointmentAction.CHECK_IN, "someone-else", ActorRole.CUSTOMER)


@pytest.mark.asyncio
async def test_invalid_transition_writes_nothing(repo, mock_event_bus):
    """Test rejected actions leave storage untouched."""
    repo.get_appointment.return_value = build_appointment()
    service = make_service(repo, mock_event_bus, local(MONDAY, 9, 58))

    with pytest.raises(InvalidTransitionError):
        await service.perform_action(
            "appt-1", AppointmentAction.CONFIRM_COMPLETION, BARBER_ID, ActorRole.BARBER
        )
    repo.update_appointment.assert_not_called()
    mock_event_bus.publish.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_too_late(repo, mock_event_bus):
    """Test cancelling 90 minutes ahead is rejected."""
    repo.get_appointment.return_value = build_appointment("10:00 AM")
    service = make_service(repo, mock_event_bus, local(MONDAY, 8, 30))

    with pytest.raises(CancellationTooLateError):
        await service.cancel_appointment("appt-1", CUSTOMER_ID, ActorRole.CUSTOMER)


@pytest.mark.asyncio
async def test_cancel_publishes_cancelled(repo, mock_event_bus):
    """Test a timely cancellation is announced as cancelled."""
    appt = build_appointment("10:00 AM")
    repo.get_appointment.return_value = appt
    repo.update_appointment.return_value = appt.model_copy(update={"status": S.CANCELLED})
    service = make_service(repo, mock_event_bus, local(MONDAY, 7, 0))

    await service.cancel_appointment("appt-1", CUSTOMER_ID, ActorRole.CUSTOMER)

    patch = repo.update_appointment.call_args[0][1]
    assert set(patch) == {"status", "updated_at"}
    assert mock_event_bus.publish.call_args[0][0].kind == AppointmentEventKind.CANCELLED


@pytest.mark.asyncio
async def test_barber_agenda(repo, mock_event_bus):
    """Test the agenda flags today's appointments."""
    repo.get_barber_appointments.return_value = [build_appointment("09:00 AM")]
    service = make_service(repo, mock_event_bus, local(MONDAY, 9, 30))

    agenda = await service.get_barber_agenda(BARBER_ID)

    assert agenda[0].is_stale
    assert agenda[0].is_next_candidate
