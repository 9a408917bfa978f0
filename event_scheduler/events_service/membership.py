"""
Event membership manager: event creation, listings and RSVP.

A user is either a member of an event or not. The UNIQUE(event_id, user_id)
constraint on event_attendees decides concurrent joins, so two simultaneous
joins by the same user resolve to one success and one ConflictError.
"""

import logging
import re
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional

import psycopg2
import psycopg2.errors

from event_scheduler.database.db_connection import Database
from event_scheduler.errors import ConflictError, NotFoundError, StoreError, ValidationError, text_field

logger = logging.getLogger(__name__)

# --- CONSTANTS FOR VALIDATION ---
TITLE_MAX_LENGTH = 200
LOCATION_MAX_LENGTH = 255
DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
TIME_PATTERN = re.compile(r"\d{2}:\d{2}(:\d{2})?")

EVENT_COLUMNS = "e.id, e.title, e.description, e.event_date, e.event_time, e.location, e.creator_id, e.created_at"


def parse_date(val: Optional[str]) -> Optional[date]:
    """
    Parse a zero-padded YYYY-MM-DD string.

    Returns:
        date: The parsed date, or None if invalid.
    """
    if not isinstance(val, str) or not DATE_PATTERN.fullmatch(val):
        return None
    try:
        return datetime.strptime(val, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_time(val: Optional[str]) -> Optional[time]:
    """Parse a zero-padded HH:MM or HH:MM:SS string; None if invalid."""
    if not isinstance(val, str) or not TIME_PATTERN.fullmatch(val):
        return None
    fmt = "%H:%M:%S" if len(val) == 8 else "%H:%M"
    try:
        return datetime.strptime(val, fmt).time()
    except ValueError:
        return None


def format_time(value: time) -> str:
    """HH:MM, or HH:MM:SS when the seconds are not zero."""
    return value.strftime("%H:%M:%S" if value.second else "%H:%M")


def _iso(value: Any) -> Any:
    return value.isoformat() if value is not None else None


def serialize_event(row: Any) -> Dict[str, Any]:
    """Convert an events row (plus any aggregate columns) into a JSON-ready dict."""
    event = dict(row)
    event["event_date"] = _iso(event.get("event_date"))
    if event.get("event_time") is not None:
        event["event_time"] = format_time(event["event_time"])
    event["created_at"] = _iso(event.get("created_at"))
    if "attendee_count" in event:
        event["attendee_count"] = int(event["attendee_count"] or 0)
    return event


class EventMembershipManager:
    """Creates events, reads them with attendance, and applies join/leave."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def create_event(
        self,
        creator_id: int,
        title: Optional[str],
        event_date: Optional[str],
        event_time: Optional[str],
        location: Optional[str],
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Persist a new event owned by `creator_id`.

        Past dates are accepted; only the shape of date and time is checked.

        Returns:
            dict: The stored event.

        Raises:
            ValidationError: A required field is empty or malformed.
            StoreError: The database failed.
        """
        title = text_field(title, "title").strip()
        location = text_field(location, "location").strip()
        description = text_field(description, "description").strip() or None
        event_date = text_field(event_date, "event_date")
        event_time = text_field(event_time, "event_time")

        # --- START VALIDATION ---
        if not title or not event_date or not event_time or not location:
            raise ValidationError("Title, date, time, and location are required")

        if len(title) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title must be {TITLE_MAX_LENGTH} characters or less.")
        if len(location) > LOCATION_MAX_LENGTH:
            raise ValidationError(f"Location must be {LOCATION_MAX_LENGTH} characters or less.")

        parsed_date = parse_date(event_date)
        if parsed_date is None:
            raise ValidationError("Invalid date format. Use YYYY-MM-DD.")
        parsed_time = parse_time(event_time)
        if parsed_time is None:
            raise ValidationError("Invalid time format. Use HH:MM or HH:MM:SS.")
        # --- END VALIDATION ---

        sql = """
            INSERT INTO events (title, description, event_date, event_time, location, creator_id)
            VALUES (%s, %s, %s, %s, %s, %s)
            RETURNING id, title, description, event_date, event_time, location, creator_id, created_at;
        """

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (title, description, parsed_date, parsed_time, location, creator_id))
                    row = cur.fetchone()
        except psycopg2.Error as e:
            logger.exception("Database error creating event")
            raise StoreError("Failed to create event") from e

        event = serialize_event(row)
        logger.info(f"User {creator_id} created event {event['id']}")
        return event

    def list_events(self) -> List[Dict[str, Any]]:
        """
        Return every event ordered by date then time, with the creator's
        name and the number of current attendees.
        """
        sql = f"""
            SELECT
                {EVENT_COLUMNS},
                u.name AS creator_name,
                COUNT(ea.id) AS attendee_count
            FROM events e
            LEFT JOIN users u ON e.creator_id = u.id
            LEFT JOIN event_attendees ea ON e.id = ea.event_id
            GROUP BY e.id, u.name
            ORDER BY e.event_date, e.event_time, e.id;
        """

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql)
                    rows = cur.fetchall()
        except psycopg2.Error as e:
            logger.exception("Database error listing events")
            raise StoreError("Failed to fetch events") from e

        return [serialize_event(row) for row in rows]

    def get_event(self, event_id: int) -> Dict[str, Any]:
        """
        Return one event with its attendees ordered by join time.

        Each attendee is flagged `is_organizer` when they created the event.

        Raises:
            NotFoundError: No such event.
            StoreError: The database failed.
        """
        event_sql = f"""
            SELECT {EVENT_COLUMNS}, u.name AS creator_name
            FROM events e
            LEFT JOIN users u ON e.creator_id = u.id
            WHERE e.id = %s;
        """
        attendees_sql = """
            SELECT u.id, u.name, u.email, ea.joined_at
            FROM event_attendees ea
            JOIN users u ON ea.user_id = u.id
            WHERE ea.event_id = %s
            ORDER BY ea.joined_at, ea.id;
        """

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(event_sql, (event_id,))
                    row = cur.fetchone()
                    if row is None:
                        raise NotFoundError("Event not found")

                    cur.execute(attendees_sql, (event_id,))
                    attendee_rows = cur.fetchall()
        except psycopg2.Error as e:
            logger.exception(f"Database error getting event {event_id}")
            raise StoreError("Failed to fetch event") from e

        event = serialize_event(row)
        event["attendees"] = [
            {
                "id": a["id"],
                "name": a["name"],
                "email": a["email"],
                "joined_at": _iso(a["joined_at"]),
                "is_organizer": a["id"] == event["creator_id"],
            }
            for a in attendee_rows
        ]
        event["attendee_count"] = len(event["attendees"])
        return event

    def join(self, event_id: int, user_id: int) -> None:
        """
        RSVP `user_id` to `event_id`.

        Raises:
            NotFoundError: No such event.
            ConflictError: The user already joined.
            StoreError: The database failed.
        """
        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT id FROM events WHERE id = %s;", (event_id,))
                    if cur.fetchone() is None:
                        raise NotFoundError("Event not found")

                    # The unique constraint is the duplicate check; no read-then-write here
                    cur.execute(
                        "INSERT INTO event_attendees (event_id, user_id) VALUES (%s, %s);",
                        (event_id, user_id),
                    )
        except psycopg2.errors.UniqueViolation:
            raise ConflictError("Already joined this event")
        except psycopg2.errors.ForeignKeyViolation:
            raise NotFoundError("User not found")
        except psycopg2.Error as e:
            logger.exception(f"Database error joining event {event_id}")
            raise StoreError("Failed to join event") from e

        logger.info(f"User {user_id} joined event {event_id}")

    def leave(self, event_id: int, user_id: int) -> bool:
        """
        Remove the RSVP of `user_id` from `event_id`.

        Leaving an event the user never joined is not an error.

        Returns:
            bool: True if a membership was removed.
        """
        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "DELETE FROM event_attendees WHERE event_id = %s AND user_id = %s;",
                        (event_id, user_id),
                    )
                    removed = cur.rowcount > 0
        except psycopg2.Error as e:
            logger.exception(f"Database error leaving event {event_id}")
            raise StoreError("Failed to leave event") from e

        if removed:
            logger.info(f"User {user_id} left event {event_id}")
        return removed
