"""
Supabase repository for the scheduling core.
Handles all reads and writes for appointments, services, schedules,
blocked dates and barber availability flags.

Tables:
    appointments               one row per appointment, snake_case fields
    services                   barber_id, name, price, duration_minutes
    barber_schedules           barber_id (unique), schedule (jsonb, 7 days)
    barber_unavailable_dates   unique (barber_id, date), reason
    users                      barber availability flags

The core never retries: every driver failure surfaces as StorageFailureError.
No caching happens here; callers re-read what they need.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.barber import BarberProfile
from models.schedule import BarberSchedule, DayAvailability, UnavailableDate
from models.service import BarberService, BarberServiceCreate, BarberServiceUpdate
from utils.constants import (
    APPOINTMENTS_TABLE,
    SCHEDULES_TABLE,
    SERVICES_TABLE,
    UNAVAILABLE_DATES_TABLE,
    USERS_TABLE,
)
from utils.datetime_utils import to_iso_string, utc_now
from utils.exceptions import AppointmentNotFoundError, StorageFailureError
from utils.logging_config import get_logger

logger = get_logger(__name__)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_iso_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def to_row(data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert model values to JSON-safe column values."""
    return {key: _serialize(value) for key, value in data.items()}


class SupabaseRepository:
    """
    Supabase-backed repository.

    Uses the service key; row level security should be configured in the
    Supabase dashboard for anything user-facing.
    """

    def __init__(self, client: Optional[SupabaseClientType] = None):
        self.client: SupabaseClientType = client or create_client(
            settings.supabase_url, settings.supabase_key
        )

    # ========== Appointment Operations ==========

    async def create_appointment(self, appointment_data: AppointmentCreate) -> Appointment:
        """Insert a new appointment and return the stored row."""
        now = utc_now()
        row = to_row(appointment_data.model_dump())
        row["created_at"] = to_iso_string(now)
        row["updated_at"] = to_iso_string(now)

        try:
            response = self.client.table(APPOINTMENTS_TABLE).insert(row).execute()
        except Exception as e:
            raise StorageFailureError(f"Failed to create appointment: {e}") from e

        if not response.data:
            raise StorageFailureError("Failed to create appointment: no data returned")

        appointment = Appointment(**response.data[0])
        logger.debug(f"Created appointment {appointment.id} for barber {appointment.barber_id}")
        return appointment

    async def get_appointment(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get appointment: {e}") from e

        if response.data:
            return Appointment(**response.data[0])
        return None

    async def get_barber_appointments(
        self, barber_id: str, target_date: date
    ) -> List[Appointment]:
        """All of a barber's appointments on a date, in start order."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .eq("date", target_date.isoformat())
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get barber appointments: {e}") from e

        return self._sorted(response.data)

    async def get_barber_appointments_by_status(
        self,
        barber_id: str,
        statuses: Iterable[AppointmentStatus],
        start_date: date,
        end_date: date,
    ) -> List[Appointment]:
        """Barber's appointments with the given statuses in a date range."""
        status_values = [AppointmentStatus(s).value for s in statuses]
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .in_("status", status_values)
                .gte("date", start_date.isoformat())
                .lte("date", end_date.isoformat())
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get barber appointments: {e}") from e

        return self._sorted(response.data)

    async def get_customer_appointments(
        self, customer_id: str, start_date: date, end_date: date
    ) -> List[Appointment]:
        """Customer's appointments across all barbers in a date range."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("customer_id", customer_id)
                .gte("date", start_date.isoformat())
                .lte("date", end_date.isoformat())
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get customer appointments: {e}") from e

        return self._sorted(response.data)

    async def update_appointment(
        self, appointment_id: str, patch: Dict[str, Any]
    ) -> Appointment:
        """
        Write a partial update. Last write wins.

        Raises:
            AppointmentNotFoundError: No row was updated
            StorageFailureError: Driver failure
        """
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .update(to_row(patch))
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to update appointment: {e}") from e

        if not response.data:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        return Appointment(**response.data[0])

    async def get_appointments_for_reminder(
        self, window_start: datetime, window_end: datetime
    ) -> List[Appointment]:
        """Upcoming appointments without a reminder starting inside a window."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("status", AppointmentStatus.UPCOMING.value)
                .eq("reminder_sent", False)
                .gte("appointment_timestamp", to_iso_string(window_start))
                .lte("appointment_timestamp", to_iso_string(window_end))
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get appointments for reminder: {e}") from e

        return self._sorted(response.data)

    # ========== Service Operations ==========

    async def create_service(self, service_data: BarberServiceCreate) -> BarberService:
        now = to_iso_string(utc_now())
        row = to_row(service_data.model_dump())
        row.update({"created_at": now, "updated_at": now})

        try:
            response = self.client.table(SERVICES_TABLE).insert(row).execute()
        except Exception as e:
            raise StorageFailureError(f"Failed to create service: {e}") from e

        if not response.data:
            raise StorageFailureError("Failed to create service: no data returned")
        return BarberService(**response.data[0])

    async def get_service(self, service_id: str) -> Optional[BarberService]:
        try:
            response = (
                self.client.table(SERVICES_TABLE)
                .select("*")
                .eq("id", service_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get service: {e}") from e

        if response.data:
            return BarberService(**response.data[0])
        return None

    async def list_services(self, barber_id: str) -> List[BarberService]:
        try:
            response = (
                self.client.table(SERVICES_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .order("name")
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to list services: {e}") from e

        return [BarberService(**item) for item in response.data or []]

    async def update_service(
        self, service_id: str, update: BarberServiceUpdate
    ) -> Optional[BarberService]:
        patch = to_row(update.model_dump(exclude_none=True))
        patch["updated_at"] = to_iso_string(utc_now())

        try:
            response = (
                self.client.table(SERVICES_TABLE)
                .update(patch)
                .eq("id", service_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to update service: {e}") from e

        if response.data:
            return BarberService(**response.data[0])
        return None

    async def delete_service(self, service_id: str) -> bool:
        try:
            response = (
                self.client.table(SERVICES_TABLE)
                .delete()
                .eq("id", service_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to delete service: {e}") from e

        return bool(response.data)

    # ========== Schedule Operations ==========

    async def get_schedule(self, barber_id: str) -> BarberSchedule:
        """Barber's weekly schedule, or the default one if never saved."""
        try:
            response = (
                self.client.table(SCHEDULES_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get schedule: {e}") from e

        if not response.data:
            logger.debug(f"No saved schedule for barber {barber_id}, using default")
            return BarberSchedule.default(barber_id)

        row = response.data[0]
        return BarberSchedule(
            barber_id=barber_id,
            days=[DayAvailability(**day) for day in row.get("schedule") or []],
            updated_at=row.get("updated_at"),
        )

    async def save_schedule(self, schedule: BarberSchedule) -> BarberSchedule:
        """Replace the weekly schedule wholesale."""
        row = {
            "barber_id": schedule.barber_id,
            "schedule": [day.model_dump() for day in schedule.days],
            "updated_at": to_iso_string(utc_now()),
        }

        try:
            self.client.table(SCHEDULES_TABLE).upsert(
                row, on_conflict="barber_id"
            ).execute()
        except Exception as e:
            raise StorageFailureError(f"Failed to save schedule: {e}") from e

        return schedule.model_copy(update={"updated_at": utc_now()})

    async def list_unavailable_dates(self, barber_id: str) -> List[UnavailableDate]:
        try:
            response = (
                self.client.table(UNAVAILABLE_DATES_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .order("date")
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to list unavailable dates: {e}") from e

        return [UnavailableDate(**item) for item in response.data or []]

    async def add_unavailable_date(self, entry: UnavailableDate) -> UnavailableDate:
        """Block a date. Re-adding the same date replaces its reason."""
        row = to_row(entry.model_dump())
        row["created_at"] = to_iso_string(entry.created_at or utc_now())

        try:
            response = (
                self.client.table(UNAVAILABLE_DATES_TABLE)
                .upsert(row, on_conflict="barber_id,date")
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to add unavailable date: {e}") from e

        if response.data:
            return UnavailableDate(**response.data[0])
        return entry

    async def remove_unavailable_date(self, barber_id: str, target_date: date) -> bool:
        try:
            response = (
                self.client.table(UNAVAILABLE_DATES_TABLE)
                .delete()
                .eq("barber_id", barber_id)
                .eq("date", target_date.isoformat())
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to remove unavailable date: {e}") from e

        return bool(response.data)

    # ========== Barber Operations ==========

    async def get_barber_profile(self, barber_id: str) -> Optional[BarberProfile]:
        try:
            response = (
                self.client.table(USERS_TABLE)
                .select("*")
                .eq("id", barber_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to get barber profile: {e}") from e

        if response.data:
            return BarberProfile(**response.data[0])
        return None

    async def update_barber_flags(self, barber_id: str, **flags: Any) -> Optional[BarberProfile]:
        """Update availability flags on the barber's user record."""
        patch = to_row(flags)
        patch["updated_at"] = to_iso_string(utc_now())

        try:
            response = (
                self.client.table(USERS_TABLE)
                .update(patch)
                .eq("id", barber_id)
                .execute()
            )
        except Exception as e:
            raise StorageFailureError(f"Failed to update barber flags: {e}") from e

        if response.data:
            return BarberProfile(**response.data[0])
        return None

    # ========== Helpers ==========

    @staticmethod
    def _sorted(rows: Optional[List[dict]]) -> List[Appointment]:
        appointments = [Appointment(**item) for item in rows or []]
        return sorted(appointments, key=lambda appt: (appt.date, appt.start_minutes))


# Global repository instance
_repository: Optional[SupabaseRepository] = None


def get_repository() -> SupabaseRepository:
    """Get or create the global repository instance."""
    global _repository
    if _repository is None:
        _repository = SupabaseRepository()
    return _repository
