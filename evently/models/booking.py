"""Booking data model."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Booking(BaseModel):
    """Booking record matching the bookings table."""

    id: Optional[int] = None
    event_id: int = Field(..., description="Identifier of the booked event")
    email: str = Field(..., min_length=1, description="Attendee email address")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        str_strip_whitespace = True
        str_to_lower = True
        validate_assignment = True
