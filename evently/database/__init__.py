"""Database package for Evently application."""

from .connections import (
    ConnectionState,
    DatabaseManager,
    cleanup_database_manager,
    get_database_manager,
    reset_database_manager,
)
from .repositories import BookingRepository, EventRepository

__all__ = [
    "ConnectionState",
    "DatabaseManager",
    "get_database_manager",
    "reset_database_manager",
    "cleanup_database_manager",
    "EventRepository",
    "BookingRepository"
]
