"""Table and index definitions, issued idempotently by ``ensure_schema``."""

EVENTS_TABLE = """
    CREATE TABLE IF NOT EXISTS events (
        id BIGSERIAL PRIMARY KEY,
        title VARCHAR(100) NOT NULL,
        slug TEXT NOT NULL,
        description VARCHAR(1000) NOT NULL,
        overview VARCHAR(500) NOT NULL,
        image TEXT NOT NULL,
        venue TEXT NOT NULL,
        location TEXT NOT NULL,
        "date" TEXT NOT NULL,
        "time" TEXT NOT NULL,
        mode TEXT NOT NULL CHECK (mode IN ('online', 'offline', 'hybrid')),
        audience TEXT NOT NULL,
        agenda TEXT[] NOT NULL,
        organizer TEXT NOT NULL,
        tags TEXT[] NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
"""

# Booking.event_id carries no foreign key; existence is checked before insert.
BOOKINGS_TABLE = """
    CREATE TABLE IF NOT EXISTS bookings (
        id BIGSERIAL PRIMARY KEY,
        event_id BIGINT NOT NULL,
        email TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
"""

EVENTS_SLUG_INDEX = "events_slug_key"

SCHEMA_STATEMENTS = (
    EVENTS_TABLE,
    f"CREATE UNIQUE INDEX IF NOT EXISTS {EVENTS_SLUG_INDEX} ON events (slug)",
    'CREATE INDEX IF NOT EXISTS events_date_mode_idx ON events ("date", mode)',
    BOOKINGS_TABLE,
    "CREATE INDEX IF NOT EXISTS bookings_event_id_idx ON bookings (event_id)",
)
