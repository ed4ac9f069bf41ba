"""
Pre-save validation

Runs before a record is handed to storage. ``normalize_event`` derives and
canonicalizes event fields; ``validate_booking`` checks the email shape and
that the booked event exists.
"""

import re
from typing import Any, Dict, Optional, Protocol

import structlog

from evently.errors import EventNotFound, InvalidEmail, InvalidSlug
from evently.models.booking import Booking
from evently.models.event import Event
from evently.normalizers import generate_slug, normalize_date, normalize_time


logger = structlog.get_logger(__name__)

EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')


class EventLookup(Protocol):
    """Anything that can answer whether an event exists."""

    async def exists(self, id_value: Any) -> bool:
        ...


def normalize_event(event: Event, previous: Optional[Event] = None) -> Event:
    """
    Derive the slug and canonicalize date and time before an event is saved.

    Each field is recomputed only when the record is new (``previous`` is
    None) or its source field differs from the persisted snapshot. When the
    title is unchanged the persisted slug is kept.

    Args:
        event: Record about to be written
        previous: Persisted version of the record, None if it was never saved

    Returns:
        Normalized copy of ``event``; the argument itself is left untouched

    Raises:
        InvalidSlug: If a new or changed title yields an empty slug
        InvalidDateFormat: If the date cannot be parsed
        InvalidTimeFormat: If the time cannot be parsed or is out of range
    """
    is_new = previous is None
    updates: Dict[str, Any] = {}

    if is_new or event.title != previous.title:
        slug = generate_slug(event.title)
        if not slug:
            raise InvalidSlug(event.title)
        updates['slug'] = slug
    else:
        updates['slug'] = previous.slug

    if is_new or event.date != previous.date:
        updates['date'] = normalize_date(event.date)

    if is_new or event.time != previous.time:
        updates['time'] = normalize_time(event.time)

    logger.debug("Event normalized", event_id=event.id, is_new=is_new,
                 fields=sorted(updates))

    return event.model_copy(update=updates)


def is_valid_email(email: str) -> bool:
    """Check an address against the standard local@domain.tld shape."""
    if not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email))


async def validate_booking(booking: Booking, events: EventLookup) -> Booking:
    """
    Check a booking before it is saved.

    The email is checked first so a malformed address never costs a storage
    round-trip. The existence check is a single read; an event deleted
    between this read and the booking insert is not detected.

    Args:
        booking: Booking about to be written
        events: Lookup used for the referential existence check

    Returns:
        The booking, unchanged

    Raises:
        InvalidEmail: If the email is malformed
        EventNotFound: If ``booking.event_id`` matches no stored event
    """
    if not is_valid_email(booking.email):
        logger.info("Booking rejected", reason="invalid_email", event_id=booking.event_id)
        raise InvalidEmail(booking.email)

    if not await events.exists(booking.event_id):
        logger.info("Booking rejected", reason="event_not_found", event_id=booking.event_id)
        raise EventNotFound(booking.event_id)

    return booking
