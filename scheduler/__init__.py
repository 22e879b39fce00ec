"""Background jobs for appointment reminders."""

from .reminders import send_due_reminders, setup_scheduler, shutdown_scheduler

__all__ = ["setup_scheduler", "send_due_reminders", "shutdown_scheduler"]
