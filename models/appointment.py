"""Appointment models and lifecycle vocabulary."""

from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from utils.time_labels import time_to_minutes


class AppointmentStatus(str, Enum):
    """Appointment status."""

    UPCOMING = "upcoming"
    CUSTOMER_INITIATED_CHECK_IN = "customer-initiated-check-in"
    BARBER_INITIATED_CHECK_IN = "barber-initiated-check-in"
    IN_PROGRESS = "in-progress"
    CUSTOMER_INITIATED_COMPLETION = "customer-initiated-completion"
    BARBER_INITIATED_COMPLETION = "barber-initiated-completion"
    COMPLETED = "completed"
    NO_SHOW = "no-show"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.NO_SHOW,
        AppointmentStatus.CANCELLED,
    }
)

# Still waiting for or receiving service today
OPEN_STATUSES = frozenset(
    {
        AppointmentStatus.UPCOMING,
        AppointmentStatus.CUSTOMER_INITIATED_CHECK_IN,
        AppointmentStatus.BARBER_INITIATED_CHECK_IN,
        AppointmentStatus.IN_PROGRESS,
    }
)

# Service has not started yet
PRE_SERVICE_STATUSES = frozenset(
    {
        AppointmentStatus.UPCOMING,
        AppointmentStatus.CUSTOMER_INITIATED_CHECK_IN,
        AppointmentStatus.BARBER_INITIATED_CHECK_IN,
    }
)

# Set-once lifecycle timestamps
TIMESTAMP_FIELDS = (
    "customer_checked_in_at",
    "barber_checked_in_at",
    "service_actually_started_at",
    "customer_marked_done_at",
    "barber_marked_done_at",
    "service_actually_completed_at",
    "no_show_marked_at",
)


class ActorRole(str, Enum):
    """Party performing an action on an appointment."""

    CUSTOMER = "customer"
    BARBER = "barber"


class AppointmentAction(str, Enum):
    """Actions a party may request against an appointment."""

    CHECK_IN = "check-in"
    CONFIRM_START = "confirm-start"
    MARK_DONE = "mark-done"
    CONFIRM_COMPLETION = "confirm-completion"
    CANCEL = "cancel"
    MARK_NO_SHOW = "mark-no-show"


class Appointment(BaseModel):
    """Appointment model. Service fields are a snapshot taken at booking time."""

    id: Optional[str] = None
    barber_id: str
    barber_name: str = ""
    customer_id: Optional[str] = Field(
        default=None, description="Customer user ID, null for walk-ins"
    )
    customer_name: str
    service_id: str
    service_name: str
    price: float = Field(..., ge=0)
    date: date
    start_time: str = Field(..., description="12-hour label, e.g. '09:00 AM'")
    end_time: str
    appointment_timestamp: datetime
    status: AppointmentStatus = AppointmentStatus.UPCOMING
    customer_checked_in_at: Optional[datetime] = None
    barber_checked_in_at: Optional[datetime] = None
    service_actually_started_at: Optional[datetime] = None
    customer_marked_done_at: Optional[datetime] = None
    barber_marked_done_at: Optional[datetime] = None
    service_actually_completed_at: Optional[datetime] = None
    no_show_marked_at: Optional[datetime] = None
    reminder_sent: bool = Field(default=False)
    reminder_skipped_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "barber_id": "barber-uuid",
                "barber_name": "Karim",
                "customer_id": "customer-uuid",
                "customer_name": "Yacine",
                "service_id": "service-uuid",
                "service_name": "Classic cut",
                "price": 800,
                "date": "2024-05-06",
                "start_time": "09:00 AM",
                "end_time": "09:30 AM",
                "status": "upcoming",
            }
        }

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_label(cls, v: str) -> str:
        time_to_minutes(v)
        return v

    @property
    def status_enum(self) -> AppointmentStatus:
        return AppointmentStatus(self.status)

    @property
    def is_walk_in(self) -> bool:
        return self.customer_id is None

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes


class AppointmentCreate(BaseModel):
    """Appointment creation model."""

    barber_id: str
    barber_name: str = ""
    customer_id: Optional[str] = None
    customer_name: str
    service_id: str
    service_name: str
    price: float
    date: date
    start_time: str
    end_time: str
    appointment_timestamp: datetime
    status: AppointmentStatus = AppointmentStatus.UPCOMING
    customer_checked_in_at: Optional[datetime] = None
    barber_checked_in_at: Optional[datetime] = None
    service_actually_started_at: Optional[datetime] = None

    class Config:
        use_enum_values = True


class TransitionResult(BaseModel):
    """Next status plus the timestamp patch a transition writes."""

    previous_status: AppointmentStatus
    status: AppointmentStatus
    timestamps: Dict[str, datetime] = Field(default_factory=dict)
    updated_at: datetime

    class Config:
        use_enum_values = True

    def to_patch(self) -> Dict[str, object]:
        """Fields to write to storage for this transition."""
        patch: Dict[str, object] = {"status": self.status, "updated_at": self.updated_at}
        patch.update(self.timestamps)
        return patch
