"""Barber profile model with availability flags."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class BarberProfile(BaseModel):
    """Barber user record fields the scheduling core reads."""

    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_accepting_bookings: bool = Field(
        default=True, description="Gates new online bookings only"
    )
    is_temporarily_unavailable: bool = False
    unavailable_since: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or "Barber"
