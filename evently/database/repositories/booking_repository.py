"""Booking repository for managing booking data."""

from datetime import datetime, timezone
from typing import List, Optional
import asyncpg
import structlog

from evently.database.connections import DatabaseManager
from evently.database.repositories.base import BaseRepository
from evently.database.repositories.event_repository import EventRepository
from evently.errors import BookingNotFound
from evently.models.booking import Booking
from evently.validation import validate_booking


logger = structlog.get_logger(__name__)


class BookingRepository(BaseRepository[Booking]):
    """Repository for managing bookings in PostgreSQL."""

    def __init__(self, db_manager: DatabaseManager, events: Optional[EventRepository] = None):
        """
        Initialize booking repository.

        Args:
            db_manager: Database manager instance
            events: Event repository used for the existence check
        """
        super().__init__(db_manager, "bookings")
        self.events = events or EventRepository(db_manager)
        self.logger = logger.bind(component="booking_repository")

    def _row_to_model(self, row: asyncpg.Record) -> Booking:
        """Convert database row to Booking model."""
        return Booking(
            id=row['id'],
            event_id=row['event_id'],
            email=row['email'],
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )

    async def save(self, booking: Booking) -> Booking:
        """
        Validate and persist a booking.

        Nothing is written unless the email is well formed and the event
        exists. There is no retry; the caller resubmits.

        Returns:
            The stored booking with id and timestamps populated

        Raises:
            InvalidEmail: If the email is malformed
            EventNotFound: If the booked event does not exist
            BookingNotFound: If ``booking.id`` is set but no such row exists
        """
        await validate_booking(booking, self.events)

        now = datetime.now(timezone.utc)
        data = {
            'event_id': booking.event_id,
            'email': booking.email,
            'updated_at': now,
        }

        try:
            async with self.db_manager.get_postgres_connection() as conn:
                if booking.id is None:
                    data['created_at'] = now
                    row = await self._insert(conn, data)
                else:
                    row = await self._update(conn, booking.id, data)

        except Exception as e:
            self.logger.error("Error saving booking",
                              event_id=booking.event_id, error=str(e))
            raise

        if row is None:
            raise BookingNotFound(booking.id)

        saved = self._row_to_model(row)
        self.logger.info("Booking saved", id=saved.id, event_id=saved.event_id)
        return saved

    async def find_by_event_id(self,
                               event_id: int,
                               limit: int = 1000,
                               offset: int = 0) -> List[Booking]:
        """
        Find bookings for an event, oldest first.

        Args:
            event_id: Booked event
            limit: Maximum number of bookings
            offset: Number of bookings to skip
        """
        return await self.find_by_criteria(
            "event_id = $1",
            [event_id],
            order_by="created_at ASC, id ASC",
            limit=limit,
            offset=offset
        )

    async def count_for_event(self, event_id: int) -> int:
        """Number of bookings made for an event."""
        return await self.count("event_id = $1", [event_id])
