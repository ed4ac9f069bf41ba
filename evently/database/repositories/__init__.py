"""Database repositories for data access layer."""

from .base import BaseRepository
from .event_repository import EventRepository
from .booking_repository import BookingRepository

__all__ = [
    "BaseRepository",
    "EventRepository",
    "BookingRepository"
]
