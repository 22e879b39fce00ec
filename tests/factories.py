"""
Builders shared by the test modules.
"""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from models.appointment import Appointment, AppointmentStatus
from utils.datetime_utils import appointment_timestamp
from utils.time_labels import add_minutes

TZ_NAME = "Africa/Algiers"
TZ = ZoneInfo(TZ_NAME)
MONDAY = date(2024, 5, 6)
BARBER_ID = "barber-1"
CUSTOMER_ID = "customer-1"


def local(day: date, hour: int, minute: int = 0) -> datetime:
    """Wall-clock datetime in the shop timezone."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=TZ)


def build_appointment(
    start_time: str = "10:00 AM",
    duration: int = 30,
    status: AppointmentStatus = AppointmentStatus.UPCOMING,
    day: date = MONDAY,
    appointment_id: str = "appt-1",
    customer_id=CUSTOMER_ID,
    barber_id: str = BARBER_ID,
    **overrides,
) -> Appointment:
    data = dict(
        id=appointment_id,
        barber_id=barber_id,
        barber_name="Karim Benali",
        customer_id=customer_id,
        customer_name="Yacine",
        service_id="svc-cut",
        service_name="Classic cut",
        price=800,
        date=day,
        start_time=start_time,
        end_time=add_minutes(start_time, duration),
        appointment_timestamp=appointment_timestamp(day, start_time, TZ_NAME),
        status=status,
    )
    data.update(overrides)
    return Appointment(**data)
