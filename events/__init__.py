"""Appointment events for notification subscribers."""

from .bus import AppointmentEvent, AppointmentEventKind, EventBus, get_event_bus

__all__ = ["AppointmentEvent", "AppointmentEventKind", "EventBus", "get_event_bus"]
