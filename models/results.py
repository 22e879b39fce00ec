"""Decision and snapshot models returned by the scheduling core."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.appointment import Appointment


class AvailabilityStatus(str, Enum):
    """Why a slot list looks the way it does."""

    OPEN = "open"
    NO_SLOTS = "no-slots"
    BARBER_CLOSED = "barber-closed"
    DATE_UNAVAILABLE = "date-unavailable"


class AvailabilityResult(BaseModel):
    """Ordered bookable start times for one barber, date and service."""

    status: AvailabilityStatus
    slots: List[str] = Field(default_factory=list)

    class Config:
        use_enum_values = True

    @property
    def has_slots(self) -> bool:
        return bool(self.slots)


class BookingLimitStatus(str, Enum):
    """Outcome of the customer booking limit check."""

    ALLOWED = "allowed"
    DAILY_LIMIT_EXCEEDED = "daily-limit-exceeded"
    WEEKLY_LIMIT_EXCEEDED = "weekly-limit-exceeded"


class BookingLimitDecision(BaseModel):
    """Booking limit decision with the counts it was based on."""

    status: BookingLimitStatus
    same_day_count: int = 0
    same_week_count: int = 0
    max_per_day: int = 1
    max_per_week: int = 2

    class Config:
        use_enum_values = True

    @property
    def allowed(self) -> bool:
        return self.status == BookingLimitStatus.ALLOWED


class QueueSnapshot(BaseModel):
    """One-time queue status for a same-day booking."""

    position: int = Field(..., ge=1)
    estimated_wait_minutes: int = Field(..., ge=0)
    currently_serving: Optional[str] = None
    is_next: bool = False


class AgendaEntry(BaseModel):
    """Appointment on a barber's day view with derived flags."""

    appointment: Appointment
    is_stale: bool = False
    is_next_candidate: bool = False


class ShiftedAppointment(BaseModel):
    """New placement for an appointment pushed back by a busy period."""

    appointment_id: str
    original_start_time: str
    start_time: str
    end_time: str


class ShiftPlan(BaseModel):
    """Result of pushing today's remaining appointments back."""

    busy_minutes: int = 0
    shifted: List[ShiftedAppointment] = Field(default_factory=list)
    unplaceable: List[str] = Field(default_factory=list)


class BookingOutcome(BaseModel):
    """Stored appointment plus the queue snapshot for same-day bookings."""

    appointment: Appointment
    queue: Optional[QueueSnapshot] = None
