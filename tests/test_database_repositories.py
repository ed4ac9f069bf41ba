"""Tests for event and booking repositories."""

import json
from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from evently.database.repositories.booking_repository import BookingRepository
from evently.database.repositories.event_repository import EventRepository
from evently.errors import (
    BookingNotFound,
    DuplicateSlug,
    EventNotFound,
    InvalidDateFormat,
    InvalidEmail,
)
from evently.models.booking import Booking
from evently.models.event import EventMode


class TestEventRepository:
    """Test EventRepository functionality."""

    def test_init(self, mock_db_manager):
        """Test repository initialization."""
        repo = EventRepository(mock_db_manager)
        assert repo.db_manager == mock_db_manager
        assert repo.table_name == "events"

    def test_row_to_model(self, mock_db_manager, event_row):
        repo = EventRepository(mock_db_manager)

        event = repo._row_to_model(event_row())

        assert event.id == 1
        assert event.slug == "tech-summit-2024"
        assert event.mode is EventMode.HYBRID
        assert event.agenda == ["Keynote", "Workshops"]

    @pytest.mark.asyncio
    async def test_save_new_event_inserts_normalized_record(self, mock_db_manager, sample_event, event_row):
        repo = EventRepository(mock_db_manager)

        with patch.object(repo, "_insert", AsyncMock(return_value=event_row())) as insert:
            saved = await repo.save(sample_event)

        data = insert.await_args.args[1]
        assert data['slug'] == "tech-summit-2024"
        assert data['date'] == "2024-03-05"
        assert data['time'] == "14:30"
        assert data['mode'] == "hybrid"
        assert data['created_at'] == data['updated_at']
        assert saved.id == 1

    @pytest.mark.asyncio
    async def test_save_twice_keeps_slug_when_title_unchanged(self, mock_db_manager, mock_conn, event_row):
        repo = EventRepository(mock_db_manager)
        stored = event_row()
        mock_conn.fetchrow.return_value = stored

        edited = repo._row_to_model(stored).model_copy(
            update={"description": "A new description", "venue": "Main Hall", "slug": "something-else"}
        )

        updated_row = event_row(description="A new description", venue="Main Hall")
        with patch.object(repo, "_update", AsyncMock(return_value=updated_row)) as update:
            await repo.save(edited)

        conn, event_id, data = update.await_args.args
        assert event_id == 1
        assert data['slug'] == "tech-summit-2024"
        assert data['description'] == "A new description"
        assert 'created_at' not in data
        assert data['updated_at'] > stored['updated_at']
        assert "FOR UPDATE" in mock_conn.fetchrow.await_args.args[0]

    @pytest.mark.asyncio
    async def test_save_with_changed_title_regenerates_slug(self, mock_db_manager, mock_conn, event_row):
        repo = EventRepository(mock_db_manager)
        stored = event_row()
        mock_conn.fetchrow.return_value = stored
        edited = repo._row_to_model(stored).model_copy(update={"title": "Tech Summit 2025"})

        with patch.object(repo, "_update", AsyncMock(return_value=event_row(slug="tech-summit-2025"))) as update:
            await repo.save(edited)

        assert update.await_args.args[2]['slug'] == "tech-summit-2025"

    @pytest.mark.asyncio
    async def test_save_invalidates_old_and_new_slug_cache(self, mock_db_manager, mock_conn, mock_redis, event_row):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchrow.return_value = event_row()
        edited = repo._row_to_model(event_row()).model_copy(update={"title": "Renamed"})

        with patch.object(repo, "_update", AsyncMock(return_value=event_row(title="Renamed", slug="renamed"))):
            await repo.save(edited)

        deleted = set(mock_redis.delete.await_args.args)
        assert deleted == {"events:slug:tech-summit-2024", "events:slug:renamed"}

    @pytest.mark.asyncio
    async def test_save_invalid_date_writes_nothing(self, mock_db_manager, sample_event):
        repo = EventRepository(mock_db_manager)
        sample_event.date = "not-a-date"

        with patch.object(repo, "_insert", AsyncMock()) as insert:
            with pytest.raises(InvalidDateFormat):
                await repo.save(sample_event)

        insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_unknown_id(self, mock_db_manager, mock_conn, event_row):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchrow.return_value = None
        event = repo._row_to_model(event_row(id=99))

        with pytest.raises(EventNotFound):
            await repo.save(event)

    @pytest.mark.asyncio
    async def test_save_duplicate_slug(self, mock_db_manager, sample_event):
        repo = EventRepository(mock_db_manager)
        conflict = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")

        with patch.object(repo, "_insert", AsyncMock(side_effect=conflict)):
            with pytest.raises(DuplicateSlug) as exc_info:
                await repo.save(sample_event)

        assert exc_info.value.slug == "tech-summit-2024"

    @pytest.mark.asyncio
    async def test_find_by_slug_reads_database_and_fills_cache(self, mock_db_manager, mock_conn, mock_redis, event_row):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchrow.return_value = event_row()

        event = await repo.find_by_slug("tech-summit-2024")

        assert event.id == 1
        mock_conn.fetchrow.assert_awaited_once()
        key, ttl, payload = mock_redis.setex.await_args.args
        assert key == "events:slug:tech-summit-2024"
        assert ttl == mock_db_manager.config.cache_ttl_seconds
        assert json.loads(payload)['slug'] == "tech-summit-2024"

    @pytest.mark.asyncio
    async def test_find_by_slug_cache_hit(self, mock_db_manager, mock_conn, mock_redis, event_row):
        repo = EventRepository(mock_db_manager)
        cached = repo._row_to_model(event_row()).model_dump(mode="json")
        mock_redis.get.return_value = json.dumps(cached)

        event = await repo.find_by_slug("tech-summit-2024")

        assert event.title == "Tech Summit 2024!!"
        mock_conn.fetchrow.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_by_slug_survives_cache_failure(self, mock_db_manager, mock_conn, mock_redis, event_row):
        repo = EventRepository(mock_db_manager)
        mock_redis.get.side_effect = ConnectionError("redis down")
        mock_conn.fetchrow.return_value = event_row()

        assert (await repo.find_by_slug("tech-summit-2024")).id == 1

    @pytest.mark.asyncio
    async def test_find_by_slug_not_found(self, mock_db_manager, mock_conn, mock_redis):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchrow.return_value = None

        assert await repo.find_by_slug("missing") is None
        mock_redis.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_find_by_date_and_mode(self, mock_db_manager, mock_conn, event_row):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetch.return_value = [event_row()]

        events = await repo.find_by_date_and_mode("March 5, 2024", "hybrid")

        assert [e.id for e in events] == [1]
        args = mock_conn.fetch.await_args.args
        assert args[1:3] == ("2024-03-05", "hybrid")

    @pytest.mark.asyncio
    async def test_delete_drops_cached_slug(self, mock_db_manager, mock_conn, mock_redis, event_row):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchrow.return_value = event_row()
        mock_conn.execute.return_value = "DELETE 1"

        assert await repo.delete(1) is True
        mock_redis.delete.assert_awaited_once_with("events:slug:tech-summit-2024")

    @pytest.mark.asyncio
    async def test_exists(self, mock_db_manager, mock_conn):
        repo = EventRepository(mock_db_manager)
        mock_conn.fetchval.return_value = None

        assert await repo.exists(5) is False
        mock_conn.fetchval.assert_awaited_once()


class TestBookingRepository:
    """Test BookingRepository functionality."""

    def test_init(self, mock_db_manager):
        repo = BookingRepository(mock_db_manager)
        assert repo.table_name == "bookings"
        assert isinstance(repo.events, EventRepository)

    @pytest.mark.asyncio
    async def test_save_checks_event_then_inserts(self, mock_db_manager, mock_conn, booking_row):
        repo = BookingRepository(mock_db_manager)
        mock_conn.fetchval.return_value = 1

        with patch.object(repo, "_insert", AsyncMock(return_value=booking_row())) as insert:
            saved = await repo.save(Booking(event_id=1, email="Ada@Example.com "))

        data = insert.await_args.args[1]
        assert data['event_id'] == 1
        assert data['email'] == "ada@example.com"
        assert saved.id == 7
        mock_conn.fetchval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_save_unknown_event_creates_nothing(self, mock_db_manager, mock_conn):
        repo = BookingRepository(mock_db_manager)
        mock_conn.fetchval.return_value = None

        with patch.object(repo, "_insert", AsyncMock()) as insert:
            with pytest.raises(EventNotFound):
                await repo.save(Booking(event_id=404, email="ada@example.com"))

        insert.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_save_invalid_email(self, mock_db_manager, mock_conn):
        repo = BookingRepository(mock_db_manager)

        with patch.object(repo, "_insert", AsyncMock()) as insert:
            with pytest.raises(InvalidEmail):
                await repo.save(Booking(event_id=1, email="not-an-email"))

        insert.assert_not_awaited()
        mock_conn.fetchval.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_missing_booking(self, mock_db_manager, mock_conn):
        repo = BookingRepository(mock_db_manager)
        mock_conn.fetchval.return_value = 1

        with patch.object(repo, "_update", AsyncMock(return_value=None)):
            with pytest.raises(BookingNotFound):
                await repo.save(Booking(id=3, event_id=1, email="ada@example.com"))

    @pytest.mark.asyncio
    async def test_find_by_event_id(self, mock_db_manager, mock_conn, booking_row):
        repo = BookingRepository(mock_db_manager)
        mock_conn.fetch.return_value = [booking_row(), booking_row(id=8, email="bob@example.com")]

        bookings = await repo.find_by_event_id(1)

        assert [b.email for b in bookings] == ["ada@example.com", "bob@example.com"]

    @pytest.mark.asyncio
    async def test_count_for_event(self, mock_db_manager, mock_conn):
        repo = BookingRepository(mock_db_manager)
        mock_conn.fetchval.return_value = 3

        assert await repo.count_for_event(1) == 3
