"""Pydantic models for data validation and serialization."""

from .appointment import (
    ActorRole,
    Appointment,
    AppointmentAction,
    AppointmentCreate,
    AppointmentStatus,
    TransitionResult,
)
from .barber import BarberProfile
from .results import (
    AgendaEntry,
    AvailabilityResult,
    AvailabilityStatus,
    BookingLimitDecision,
    BookingLimitStatus,
    BookingOutcome,
    QueueSnapshot,
    ShiftedAppointment,
    ShiftPlan,
)
from .schedule import BarberSchedule, DayAvailability, DayOfWeek, UnavailableDate
from .service import BarberService, BarberServiceCreate, BarberServiceUpdate

__all__ = [
    "ActorRole",
    "AgendaEntry",
    "Appointment",
    "AppointmentAction",
    "AppointmentCreate",
    "AppointmentStatus",
    "AvailabilityResult",
    "AvailabilityStatus",
    "BarberProfile",
    "BarberSchedule",
    "BarberService",
    "BarberServiceCreate",
    "BarberServiceUpdate",
    "BookingLimitDecision",
    "BookingLimitStatus",
    "BookingOutcome",
    "DayAvailability",
    "DayOfWeek",
    "QueueSnapshot",
    "ShiftedAppointment",
    "ShiftPlan",
    "TransitionResult",
    "UnavailableDate",
]
