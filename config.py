"""
Configuration module for the BarberFlow scheduling core.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Wall clock used for dates and time labels
    timezone: str = "Africa/Algiers"

    # Slot search
    slot_step_minutes: int = 15
    booking_buffer_minutes: int = 15  # Same-day online bookings start at now + buffer
    walk_in_buffer_minutes: int = 5

    # Appointment lifecycle
    no_show_grace_minutes: int = 5
    stale_threshold_minutes: int = 5
    min_cancellation_lead_hours: int = 2

    # Customer booking limits (across all barbers)
    max_bookings_per_day: int = 1
    max_bookings_per_week: int = 2

    # Queue estimate fallback when a service cannot be resolved
    default_service_duration_minutes: int = 30

    # Reminder sweep
    reminder_minutes_before: int = 30
    reminder_window_minutes: int = 5

    # Runtime
    log_level: str = "INFO"
    environment: str = "development"  # development, staging, production

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_all_required(self) -> None:
        """
        Validate that storage credentials are present and not placeholders.

        Raises:
            ValueError: If any required setting is missing
        """
        missing = []
        placeholders = ("", "your_supabase_url", "your_supabase_key", "changeme")

        if not self.supabase_url or self.supabase_url in placeholders:
            missing.append("SUPABASE_URL")
        if not self.supabase_key or self.supabase_key in placeholders:
            missing.append("SUPABASE_KEY")

        if missing:
            raise ValueError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Set them in the environment or in {env_path}"
            )

        if self.slot_step_minutes <= 0:
            raise ValueError("SLOT_STEP_MINUTES must be positive")


settings = Settings()
