"""Data models for Evently."""

from .booking import Booking
from .config import EventlyConfig
from .event import Event, EventMode

__all__ = [
    "Booking",
    "Event",
    "EventMode",
    "EventlyConfig",
]
