"""Event data model."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class EventMode(str, Enum):
    """How attendees take part in an event."""

    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class Event(BaseModel):
    """
    Event record matching the events table.

    ``slug``, ``date`` and ``time`` hold canonical values once the record has
    been through ``normalize_event``; before that ``date`` and ``time`` may be
    any accepted input shape.
    """

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=100, description="Event title")
    slug: Optional[str] = Field(None, description="URL slug derived from the title")
    description: str = Field(..., min_length=1, max_length=1000)
    overview: str = Field(..., min_length=1, max_length=500)
    image: str = Field(..., min_length=1, description="Image URL")
    venue: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1, description="Event date, YYYY-MM-DD once saved")
    time: str = Field(..., min_length=1, description="Start time, 24-hour HH:MM once saved")
    mode: EventMode
    audience: str = Field(..., min_length=1)
    agenda: List[str] = Field(..., min_length=1, description="At least one agenda item")
    organizer: str = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1, description="At least one tag")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Update timestamp")

    class Config:
        """Pydantic configuration."""
        from_attributes = True
        str_strip_whitespace = True
        validate_assignment = True

    def to_record(self) -> Dict[str, Any]:
        """Column values for insert/update, without id and timestamps."""
        return {
            'title': self.title,
            'slug': self.slug,
            'description': self.description,
            'overview': self.overview,
            'image': self.image,
            'venue': self.venue,
            'location': self.location,
            'date': self.date,
            'time': self.time,
            'mode': self.mode.value,
            'audience': self.audience,
            'agenda': list(self.agenda),
            'organizer': self.organizer,
            'tags': list(self.tags),
        }
