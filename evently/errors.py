"""Error taxonomy for record validation, persistence and connection setup."""

from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Machine-readable error codes."""

    INVALID_DATE_FORMAT = "INVALID_DATE_FORMAT"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    INVALID_SLUG = "INVALID_SLUG"
    INVALID_EMAIL = "INVALID_EMAIL"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    BOOKING_NOT_FOUND = "BOOKING_NOT_FOUND"
    DUPLICATE_SLUG = "DUPLICATE_SLUG"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class EventlyError(Exception):
    """Base error with code and user-safe message."""

    code: ErrorCode

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class RecordValidationError(EventlyError):
    """Raised when a record fails the pre-save pipeline."""
    pass


class InvalidDateFormat(RecordValidationError):
    """Raised when a date string cannot be parsed into a calendar date."""

    code = ErrorCode.INVALID_DATE_FORMAT

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid date format: {value!r}")
        self.value = value


class InvalidTimeFormat(RecordValidationError):
    """Raised when a time string is not HH:MM or HH:MM AM/PM, or out of range."""

    code = ErrorCode.INVALID_TIME_FORMAT

    def __init__(self, value: Any, reason: str = "Use HH:MM or HH:MM AM/PM") -> None:
        super().__init__(f"Invalid time format {value!r}. {reason}")
        self.value = value


class InvalidSlug(RecordValidationError):
    """Raised when a title produces an empty slug."""

    code = ErrorCode.INVALID_SLUG

    def __init__(self, title: str) -> None:
        super().__init__(f"Title {title!r} does not produce a usable slug")
        self.title = title


class InvalidEmail(RecordValidationError):
    """Raised when a booking email is malformed."""

    code = ErrorCode.INVALID_EMAIL

    def __init__(self, email: Any) -> None:
        super().__init__(f"Invalid email address: {email!r}")
        self.email = email


class EventNotFound(EventlyError):
    """Raised when a referenced or updated event does not exist."""

    code = ErrorCode.EVENT_NOT_FOUND

    def __init__(self, event_id: Optional[int]) -> None:
        super().__init__(f"Event not found: {event_id}")
        self.event_id = event_id


class BookingNotFound(EventlyError):
    """Raised when an updated booking does not exist."""

    code = ErrorCode.BOOKING_NOT_FOUND

    def __init__(self, booking_id: Optional[int]) -> None:
        super().__init__(f"Booking not found: {booking_id}")
        self.booking_id = booking_id


class DuplicateSlug(EventlyError):
    """Raised when another event already owns the slug."""

    code = ErrorCode.DUPLICATE_SLUG

    def __init__(self, slug: str) -> None:
        super().__init__(f"An event with slug {slug!r} already exists")
        self.slug = slug


class ConfigurationError(EventlyError):
    """Raised when required configuration is missing."""

    code = ErrorCode.CONFIGURATION_ERROR
