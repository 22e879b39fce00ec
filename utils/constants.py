"""
Application-wide constants.
Centralizes table names, validation limits and default schedule values.
"""

# Storage tables
APPOINTMENTS_TABLE = "appointments"
SERVICES_TABLE = "services"
SCHEDULES_TABLE = "barber_schedules"
UNAVAILABLE_DATES_TABLE = "barber_unavailable_dates"
USERS_TABLE = "users"

# Validation limits
MAX_SERVICE_NAME_LENGTH = 100
MIN_SERVICE_DURATION_MINUTES = 5
MAX_SERVICE_DURATION_MINUTES = 480
MIN_PRICE = 0
MAX_REASON_LENGTH = 200

# Default working hours for a barber with no saved schedule
DEFAULT_OPEN_TIME = "09:00 AM"
DEFAULT_CLOSE_TIME = "05:00 PM"

# Reminder bookkeeping
REMINDER_SKIPPED_WALK_IN = "walk-in appointment has no customer"
