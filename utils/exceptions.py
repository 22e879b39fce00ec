"""
Custom exception classes for better error handling.
Every rejection the scheduling core can produce has its own type so
call-sites can turn it into a user-facing validation message.
"""


class SchedulingError(Exception):
    """Base exception for recoverable scheduling rejections."""

    pass


class MalformedTimeLabelError(SchedulingError, ValueError):
    """Raised when a 12-hour time label cannot be parsed."""

    pass


class AvailabilityError(SchedulingError):
    """Base exception for slot availability rejections."""

    pass


class BarberClosedError(AvailabilityError):
    """Raised when the barber does not work on the requested weekday."""

    pass


class DateUnavailableError(AvailabilityError):
    """Raised when the requested date is blocked by the barber."""

    pass


class NoSlotAvailableError(AvailabilityError):
    """Raised when the day is open but no free interval exists."""

    pass


class SlotNotAvailableError(AvailabilityError):
    """Raised when the requested start time is not an open slot."""

    pass


class NotAcceptingBookingsError(AvailabilityError):
    """Raised when the barber has paused new online bookings."""

    pass


class BookingLimitError(SchedulingError):
    """Base exception for customer booking limit rejections."""

    pass


class DailyLimitExceededError(BookingLimitError):
    """Raised when the customer already has a booking on that day."""

    pass


class WeeklyLimitExceededError(BookingLimitError):
    """Raised when the customer reached the weekly booking limit."""

    pass


class InvalidTransitionError(SchedulingError):
    """Raised when an action is not legal from the current status."""

    pass


class CancellationTooLateError(SchedulingError):
    """Raised when cancelling inside the minimum lead-time window."""

    pass


class NoShowTooEarlyError(SchedulingError):
    """Raised when a no-show is declared before the grace period ends."""

    pass


class UnauthorizedActorError(SchedulingError):
    """Raised when the acting user is not a party of the appointment."""

    pass


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class StorageFailureError(DatabaseError):
    """Raised when the storage collaborator fails. Never retried here."""

    pass


class AppointmentNotFoundError(DatabaseError):
    """Raised when an appointment is not found."""

    pass


class ServiceNotFoundError(DatabaseError):
    """Raised when a barber service is not found."""

    pass


class BarberNotFoundError(DatabaseError):
    """Raised when a barber profile is not found."""

    pass


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass
