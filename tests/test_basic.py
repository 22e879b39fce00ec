"""
Basic tests for models and configuration.
"""

from datetime import date

import pytest
from pydantic import ValidationError

from config import Settings
from models.appointment import AppointmentStatus
from models.schedule import BarberSchedule, DayOfWeek
from models.service import BarberService


def test_appointment_status_values():
    """Test status values match the stored strings."""
    assert AppointmentStatus.CUSTOMER_INITIATED_CHECK_IN.value == "customer-initiated-check-in"
    assert AppointmentStatus.NO_SHOW.value == "no-show"
    assert len(AppointmentStatus) == 9


def test_default_schedule():
    """Test the default week is Monday-Friday."""
    schedule = BarberSchedule.default("barber-1")

    assert schedule.for_date(date(2024, 5, 6)).is_open  # Monday
    assert not schedule.for_date(date(2024, 5, 11)).is_open  # Saturday
    assert DayOfWeek.from_date(date(2024, 5, 12)) == DayOfWeek.SUNDAY


def test_service_duration_bounds():
    """Test service validation."""
    with pytest.raises(ValidationError):
        BarberService(barber_id="b", name="Cut", price=-1, duration_minutes=30)
    with pytest.raises(ValidationError):
        BarberService(barber_id="b", name="Cut", price=10, duration_minutes=0)


def test_settings_defaults():
    """Test policy defaults."""
    settings = Settings(_env_file=None, supabase_url=None, supabase_key=None)

    assert settings.slot_step_minutes == 15
    assert settings.min_cancellation_lead_hours == 2
    assert settings.max_bookings_per_week == 2


def test_validate_all_required_missing_credentials():
    """Test startup validation names missing credentials."""
    settings = Settings(_env_file=None, supabase_url=None, supabase_key=None)

    with pytest.raises(ValueError, match="SUPABASE_URL"):
        settings.validate_all_required()


def test_validate_all_required_ok():
    """Test configured credentials pass."""
    settings = Settings(
        _env_file=None, supabase_url="https://x.supabase.co", supabase_key="service-key"
    )

    settings.validate_all_required()
