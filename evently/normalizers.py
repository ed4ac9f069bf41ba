"""
Field normalizers

Pure string transforms applied to event fields before they are persisted:
URL slugs derived from titles, calendar dates in ``YYYY-MM-DD`` form and
times in 24-hour ``HH:MM`` form.
"""

import re
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Union

from evently.errors import InvalidDateFormat, InvalidTimeFormat


_SLUG_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_HYPHEN_RUN = re.compile(r"-+")

_TIME_PATTERN = re.compile(r"^([0-9]{1,2}):([0-9]{2})(\s*(AM|PM))?$", re.IGNORECASE)

# Tried in order after ISO 8601. strptime month names follow the C locale,
# which is what the interpreter runs with unless setlocale() is called.
_DATE_FORMATS = (
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%A, %B %d, %Y",
    "%a, %b %d, %Y",
    "%a, %d %b %Y",
    "%Y/%m/%d",
    "%m/%d/%Y",
)


def generate_slug(title: str) -> str:
    """
    Build a URL-safe slug from a title.

    Lowercases, drops everything except ASCII letters, digits, whitespace and
    hyphens, then turns whitespace runs into single hyphens. Never fails: an
    empty or all-punctuation title gives an empty slug.

    Args:
        title: Event title

    Returns:
        Slug such as ``tech-summit-2024``
    """
    slug = title.lower().strip()
    slug = _SLUG_DISALLOWED.sub("", slug)
    slug = _WHITESPACE_RUN.sub("-", slug)
    slug = _HYPHEN_RUN.sub("-", slug)
    return slug.strip("-")


def _parse_iso(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None


def _parse_known_formats(text: str) -> Optional[datetime]:
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _parse_rfc2822(text: str) -> Optional[datetime]:
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def _to_utc_date(parsed: Union[date, datetime]) -> date:
    if isinstance(parsed, datetime):
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    return parsed


def normalize_date(value: str) -> str:
    """
    Normalize a free-form date string to ``YYYY-MM-DD``.

    Accepts ISO 8601 dates and datetimes, English month-name forms such as
    ``March 5, 2024``, slash forms and RFC 2822 dates. Datetimes carrying an
    offset are converted to UTC first; the time of day is discarded.

    Raises:
        InvalidDateFormat: If the value is not a parseable calendar date
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidDateFormat(value)

    text = value.strip()
    parsed = _parse_iso(text) or _parse_known_formats(text) or _parse_rfc2822(text)
    if parsed is None:
        raise InvalidDateFormat(value)

    return _to_utc_date(parsed).isoformat()


def normalize_time(value: str) -> str:
    """
    Normalize ``H:MM``, ``HH:MM`` or either followed by AM/PM to 24-hour ``HH:MM``.

    Raises:
        InvalidTimeFormat: If the value does not match or is out of range
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(value)

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        raise InvalidTimeFormat(value)

    hours = int(match.group(1))
    minutes = int(match.group(2))
    period = match.group(4).upper() if match.group(4) else None

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0

    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise InvalidTimeFormat(value, reason="Hours must be 0-23 and minutes 0-59")

    return f"{hours:02d}:{minutes:02d}"
