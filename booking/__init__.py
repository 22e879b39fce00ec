"""Orchestration of bookings, walk-ins, lifecycle actions and barber settings."""

from .appointments import AppointmentService
from .barbers import BarberAdminService, validate_schedule

__all__ = ["AppointmentService", "BarberAdminService", "validate_schedule"]
