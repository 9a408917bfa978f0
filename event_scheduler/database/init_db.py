"""
Create the scheduler tables if they do not exist yet.

Run once before starting the gateway:

    python -m event_scheduler.database.init_db

This is a bootstrap for an empty database, not a migration tool.
"""

import logging
import sys

import psycopg2

from event_scheduler.config import load_settings
from event_scheduler.database.db_connection import Database

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    email VARCHAR(255) NOT NULL UNIQUE,
    password_hash VARCHAR(255) NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS events (
    id SERIAL PRIMARY KEY,
    title VARCHAR(200) NOT NULL,
    description TEXT,
    event_date DATE NOT NULL,
    event_time TIME NOT NULL,
    location VARCHAR(255) NOT NULL,
    creator_id INTEGER NOT NULL REFERENCES users(id),
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_events_schedule ON events (event_date, event_time);

CREATE TABLE IF NOT EXISTS event_attendees (
    id SERIAL PRIMARY KEY,
    event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
    user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    joined_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CONSTRAINT uq_event_attendee UNIQUE (event_id, user_id)
);
"""


def init_db(db: Database) -> None:
    """
    Apply `SCHEMA_SQL` in a single transaction.

    Args:
        db (Database): Target database.

    Raises:
        psycopg2.Error: If any statement fails; nothing is applied then.
    """
    with db.connect() as conn:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
    logging.info("Schema is up to date.")


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")
    db = Database(load_settings())
    try:
        init_db(db)
    except psycopg2.Error as e:
        logging.error(f"Schema initialisation failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
