"""Event repository for managing event data."""

from datetime import datetime, timezone
from typing import List, Optional, Union
import asyncpg
import structlog

from evently.database.connections import DatabaseManager
from evently.database.repositories.base import BaseRepository
from evently.database.schema import EVENTS_SLUG_INDEX
from evently.errors import DuplicateSlug, EventNotFound
from evently.models.event import Event, EventMode
from evently.normalizers import normalize_date
from evently.validation import normalize_event


logger = structlog.get_logger(__name__)

SLUG_CACHE_KEY = "events:slug:{slug}"


class EventRepository(BaseRepository[Event]):
    """Repository for managing event data in PostgreSQL."""

    def __init__(self, db_manager: DatabaseManager):
        """Initialize event repository."""
        super().__init__(db_manager, "events")
        self.logger = logger.bind(component="event_repository")

    def _row_to_model(self, row: asyncpg.Record) -> Event:
        """Convert database row to Event model."""
        return Event(
            id=row['id'],
            title=row['title'],
            slug=row['slug'],
            description=row['description'],
            overview=row['overview'],
            image=row['image'],
            venue=row['venue'],
            location=row['location'],
            date=row['date'],
            time=row['time'],
            mode=row['mode'],
            audience=row['audience'],
            agenda=list(row['agenda']),
            organizer=row['organizer'],
            tags=list(row['tags']),
            created_at=row['created_at'],
            updated_at=row['updated_at']
        )

    async def save(self, event: Event) -> Event:
        """
        Normalize and persist an event.

        A record without an ``id`` is inserted. Otherwise the stored version
        is locked and read in the same transaction, and serves as the
        snapshot that decides whether slug, date and time are recomputed.
        ``updated_at`` is refreshed on every save.

        Args:
            event: Event to save; not modified

        Returns:
            The stored event, with id, slug and timestamps populated

        Raises:
            InvalidSlug, InvalidDateFormat, InvalidTimeFormat: From normalization
            EventNotFound: If ``event.id`` is set but no such row exists
            DuplicateSlug: If another event already uses the slug
        """
        now = datetime.now(timezone.utc)
        previous: Optional[Event] = None

        async with self.db_manager.get_postgres_transaction() as conn:
            if event.id is not None:
                row = await conn.fetchrow(
                    "SELECT * FROM events WHERE id = $1 FOR UPDATE", event.id
                )
                if row is None:
                    raise EventNotFound(event.id)
                previous = self._row_to_model(row)

            normalized = normalize_event(event, previous)
            data = normalized.to_record()
            data['updated_at'] = now

            try:
                if previous is None:
                    data['created_at'] = now
                    row = await self._insert(conn, data)
                else:
                    row = await self._update(conn, event.id, data)
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name in (None, EVENTS_SLUG_INDEX):
                    self.logger.info("Slug conflict", slug=normalized.slug)
                    raise DuplicateSlug(normalized.slug) from e
                raise

        saved = self._row_to_model(row)

        stale_keys = {SLUG_CACHE_KEY.format(slug=saved.slug)}
        if previous is not None:
            stale_keys.add(SLUG_CACHE_KEY.format(slug=previous.slug))
        await self.cache_delete(*stale_keys)

        self.logger.info("Event saved", id=saved.id, slug=saved.slug,
                         created=previous is None)
        return saved

    async def find_by_slug(self, slug: str) -> Optional[Event]:
        """
        Find an event by its slug, reading through the cache.

        Args:
            slug: Event slug

        Returns:
            Event if found, None otherwise
        """
        cache_key = SLUG_CACHE_KEY.format(slug=slug)
        cached = await self.cache_get(cache_key)
        if isinstance(cached, dict):
            return Event.model_validate(cached)

        try:
            async with self.db_manager.get_postgres_connection() as conn:
                row = await conn.fetchrow("SELECT * FROM events WHERE slug = $1", slug)

        except Exception as e:
            self.logger.error("Error finding event by slug", slug=slug, error=str(e))
            raise

        if row is None:
            return None

        event = self._row_to_model(row)
        await self.cache_set(cache_key, event.model_dump(mode="json"))
        return event

    async def find_by_date_and_mode(self,
                                    date: str,
                                    mode: Optional[Union[EventMode, str]] = None,
                                    limit: int = 1000,
                                    offset: int = 0) -> List[Event]:
        """
        Find events on a calendar date, optionally restricted to one mode.

        Args:
            date: Date in any shape ``normalize_date`` accepts
            mode: Optional attendance mode
            limit: Maximum number of events
            offset: Number of events to skip

        Returns:
            Events ordered by start time
        """
        day = normalize_date(date)

        if mode is None:
            where_clause, params = '"date" = $1', [day]
        else:
            where_clause, params = '"date" = $1 AND mode = $2', [day, EventMode(mode).value]

        return await self.find_by_criteria(
            where_clause,
            params,
            order_by='"time" ASC, id ASC',
            limit=limit,
            offset=offset
        )

    async def delete(self, id_value: int) -> bool:
        """Delete an event and drop its cached slug lookup."""
        event = await self.find_by_id(id_value)
        if event is None:
            return False

        deleted = await super().delete(id_value)
        if deleted:
            await self.cache_delete(SLUG_CACHE_KEY.format(slug=event.slug))
        return deleted
