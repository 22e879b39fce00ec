"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from factories import BARBER_ID, build_appointment
from models.schedule import BarberSchedule


@pytest.fixture
def make_appointment():
    """Factory for appointments on the reference Monday."""
    return build_appointment


@pytest.fixture
def weekday_schedule():
    """Mon-Fri 09:00 AM - 05:00 PM, weekend closed."""
    return BarberSchedule.default(BARBER_ID)


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table


@pytest.fixture
def mock_repository(weekday_schedule):
    """Repository double with an open weekday schedule and no bookings."""
    repo = AsyncMock()
    repo.get_schedule.return_value = weekday_schedule
    repo.list_unavailable_dates.return_value = []
    repo.get_barber_appointments.return_value = []
    repo.get_barber_appointments_by_status.return_value = []
    repo.get_customer_appointments.return_value = []
    repo.list_services.return_value = []
    return repo


@pytest.fixture
def mock_event_bus():
    """Event bus double recording published events."""
    return MagicMock()
