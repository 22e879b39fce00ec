"""
Unit tests for barber-side management.
"""

from datetime import timedelta

import pytest

from booking.barbers import BarberAdminService
from events import AppointmentEventKind
from factories import BARBER_ID, MONDAY, build_appointment, local
from models.barber import BarberProfile
from models.schedule import DayAvailability, DayOfWeek
from models.service import BarberServiceUpdate
from utils.exceptions import BarberNotFoundError, ServiceNotFoundError, ValidationError


def make_admin(repo, event_bus, now):
    return BarberAdminService(repository=repo, event_bus=event_bus, clock=lambda: now)


def _week(**overrides):
    days = []
    for day in DayOfWeek:
        days.append(overrides.get(day.value, DayAvailability(day=day, is_open=True)))
    return days


@pytest.mark.asyncio
async def test_save_schedule(mock_repository, mock_event_bus):
    """Test a valid week is saved wholesale."""
    mock_repository.save_schedule.side_effect = lambda schedule: schedule
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    saved = await admin.save_schedule(BARBER_ID, _week())

    assert len(saved.days) == 7
    mock_repository.save_schedule.assert_awaited_once()


@pytest.mark.asyncio
async def test_save_schedule_rejects_inverted_hours(mock_repository, mock_event_bus):
    """Test an open day must close after it opens."""
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))
    bad = DayAvailability(
        day=DayOfWeek.TUESDAY, is_open=True, start_time="05:00 PM", end_time="09:00 AM"
    )

    with pytest.raises(ValidationError):
        await admin.save_schedule(BARBER_ID, _week(tuesday=bad))
    mock_repository.save_schedule.assert_not_called()


@pytest.mark.asyncio
async def test_save_schedule_requires_seven_days(mock_repository, mock_event_bus):
    """Test a partial week is rejected by the model."""
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(ValueError):
        await admin.save_schedule(BARBER_ID, _week()[:6])


@pytest.mark.asyncio
async def test_block_date(mock_repository, mock_event_bus):
    """Test blocking a future date strips the reason."""
    mock_repository.add_unavailable_date.side_effect = lambda entry: entry
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    entry = await admin.block_date(BARBER_ID, "2024-05-08", "  Family event ")

    assert entry.reason == "Family event"
    assert entry.date == MONDAY + timedelta(days=2)


@pytest.mark.asyncio
async def test_block_past_date_rejected(mock_repository, mock_event_bus):
    """Test past dates cannot be blocked."""
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(ValidationError):
        await admin.block_date(BARBER_ID, MONDAY - timedelta(days=1))


@pytest.mark.asyncio
async def test_update_missing_service(mock_repository, mock_event_bus):
    """Test editing an unknown service raises."""
    mock_repository.update_service.return_value = None
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(ServiceNotFoundError):
        await admin.update_service("missing", BarberServiceUpdate(price=900))


@pytest.mark.asyncio
async def test_set_accepting_bookings_unknown_barber(mock_repository, mock_event_bus):
    """Test toggling flags for an unknown barber raises."""
    mock_repository.update_barber_flags.return_value = None
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 8, 0))

    with pytest.raises(BarberNotFoundError):
        await admin.set_accepting_bookings(BARBER_ID, False)


@pytest.mark.asyncio
async def test_stepping_away_records_since(mock_repository, mock_event_bus):
    """Test going unavailable stores the start of the busy period."""
    mock_repository.get_barber_profile.return_value = BarberProfile(id=BARBER_ID)
    now = local(MONDAY, 9, 45)
    admin = make_admin(mock_repository, mock_event_bus, now)

    plan = await admin.set_temporarily_unavailable(BARBER_ID, True)

    assert plan.shifted == []
    mock_repository.update_barber_flags.assert_awaited_once_with(
        BARBER_ID, is_temporarily_unavailable=True, unavailable_since=now
    )


@pytest.mark.asyncio
async def test_coming_back_shifts_todays_appointments(mock_repository, mock_event_bus):
    """Test returning from a busy period moves and announces appointments."""
    mock_repository.get_barber_profile.return_value = BarberProfile(
        id=BARBER_ID,
        is_temporarily_unavailable=True,
        unavailable_since=local(MONDAY, 9, 45),
    )
    appt = build_appointment("10:00 AM", 30, appointment_id="a")
    mock_repository.get_barber_appointments.return_value = [appt]
    mock_repository.update_appointment.side_effect = lambda appointment_id, patch: appt.model_copy(
        update={k: v for k, v in patch.items() if k != "updated_at"}
    )
    admin = make_admin(mock_repository, mock_event_bus, local(MONDAY, 10, 5))

    plan = await admin.set_temporarily_unavailable(BARBER_ID, False)

    assert plan.busy_minutes == 20
    appointment_id, patch = mock_repository.update_appointment.call_args[0]
    assert appointment_id == "a"
    assert patch["start_time"] == "10:20 AM"
    assert patch["end_time"] == "10:50 AM"
    assert patch["appointment_timestamp"] == local(MONDAY, 10, 20)
    event = mock_event_bus.publish.call_args[0][0]
    assert event.kind == AppointmentEventKind.SHIFTED
    mock_repository.update_barber_flags.assert_awaited_once_with(
        BARBER_ID, is_temporarily_unavailable=False, unavailable_since=None
    )
