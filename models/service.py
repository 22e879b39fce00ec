"""Barber service models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from utils.constants import (
    MAX_SERVICE_DURATION_MINUTES,
    MAX_SERVICE_NAME_LENGTH,
    MIN_PRICE,
    MIN_SERVICE_DURATION_MINUTES,
)


class BarberService(BaseModel):
    """Service offered by a barber. Copied into appointments at booking time."""

    id: Optional[str] = None
    barber_id: str
    name: str = Field(..., min_length=1, max_length=MAX_SERVICE_NAME_LENGTH)
    price: float = Field(..., ge=MIN_PRICE)
    duration_minutes: int = Field(
        ...,
        ge=MIN_SERVICE_DURATION_MINUTES,
        le=MAX_SERVICE_DURATION_MINUTES,
        description="Duration in minutes",
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "barber_id": "barber-uuid",
                "name": "Beard trim",
                "price": 400,
                "duration_minutes": 15,
            }
        }


class BarberServiceCreate(BaseModel):
    """Service creation model."""

    barber_id: str
    name: str = Field(..., min_length=1, max_length=MAX_SERVICE_NAME_LENGTH)
    price: float = Field(..., ge=MIN_PRICE)
    duration_minutes: int = Field(
        ..., ge=MIN_SERVICE_DURATION_MINUTES, le=MAX_SERVICE_DURATION_MINUTES
    )


class BarberServiceUpdate(BaseModel):
    """Partial service update. Existing appointments keep their snapshot."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=MAX_SERVICE_NAME_LENGTH)
    price: Optional[float] = Field(default=None, ge=MIN_PRICE)
    duration_minutes: Optional[int] = Field(
        default=None, ge=MIN_SERVICE_DURATION_MINUTES, le=MAX_SERVICE_DURATION_MINUTES
    )
