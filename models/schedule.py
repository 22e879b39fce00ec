"""Weekly schedule and blocked-date models."""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from utils.constants import DEFAULT_CLOSE_TIME, DEFAULT_OPEN_TIME, MAX_REASON_LENGTH
from utils.time_labels import time_to_minutes


class DayOfWeek(str, Enum):
    """Weekday names in Monday-first order."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class DayAvailability(BaseModel):
    """Working hours for one weekday."""

    day: DayOfWeek
    is_open: bool = False
    start_time: str = DEFAULT_OPEN_TIME
    end_time: str = DEFAULT_CLOSE_TIME

    class Config:
        use_enum_values = True

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_label(cls, v: str) -> str:
        time_to_minutes(v)
        return v


class BarberSchedule(BaseModel):
    """Seven-day recurring schedule, replaced wholesale by the barber."""

    barber_id: str
    days: List[DayAvailability]
    updated_at: Optional[datetime] = None

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[DayAvailability]) -> List[DayAvailability]:
        names = [DayOfWeek(d.day) for d in v]
        if len(names) != 7 or set(names) != set(DayOfWeek):
            raise ValueError("Schedule must contain exactly one entry per weekday")
        return v

    def for_date(self, value: date) -> Optional[DayAvailability]:
        """Entry for the weekday of a date."""
        weekday = DayOfWeek.from_date(value)
        for day in self.days:
            if DayOfWeek(day.day) == weekday:
                return day
        return None

    @classmethod
    def default(cls, barber_id: str) -> "BarberSchedule":
        """Monday to Friday open during default hours, weekend closed."""
        days = [
            DayAvailability(
                day=day,
                is_open=day not in (DayOfWeek.SATURDAY, DayOfWeek.SUNDAY),
            )
            for day in DayOfWeek
        ]
        return cls(barber_id=barber_id, days=days)


class UnavailableDate(BaseModel):
    """A date the barber has blocked. The date itself is the identity."""

    barber_id: str
    date: date
    reason: Optional[str] = Field(default=None, max_length=MAX_REASON_LENGTH)
    created_at: Optional[datetime] = None
