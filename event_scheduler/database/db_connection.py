"""
PostgreSQL connection helper.
Provides a `Database` object shared by the identity and membership managers.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from psycopg2.extras import DictCursor

from event_scheduler.config import Settings

logger = logging.getLogger(__name__)


class Database:
    """
    Connection factory bound to the configured DSN and timeouts.

    Every unit of work gets its own connection; there is no pool and no
    state shared between requests besides the settings.
    """

    def __init__(self, settings: Settings) -> None:
        self.dsn = settings.database_url
        self.connect_timeout = settings.db_connect_timeout
        self.statement_timeout_ms = settings.db_statement_timeout_ms

    def get_db(self) -> "psycopg2.extensions.connection":
        """
        Returns a new psycopg2 connection with dictionary-based row access.

        Returns:
            psycopg2.extensions.connection: A connection object with DictCursor factory.

        Raises:
            psycopg2.Error: If connection fails.
        """
        try:
            conn = psycopg2.connect(
                self.dsn,
                connect_timeout=self.connect_timeout,
                options=f"-c statement_timeout={self.statement_timeout_ms}",
            )
        except psycopg2.Error as e:
            logger.error(f"Error connecting to database: {e}")
            raise

        # Rows come back as dictionaries (e.g., {"id": 1, "email": "..."})
        conn.cursor_factory = DictCursor
        return conn

    @contextmanager
    def connect(self) -> Iterator["psycopg2.extensions.connection"]:
        """
        Open a connection for one transaction.

        Commits when the block exits cleanly, rolls back when it raises,
        and always closes the connection.

        Usage:
            with db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(...)
        """
        conn = self.get_db()
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def ping(self):
        """Round-trip to the server, returning its current time."""
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT NOW();")
                return cur.fetchone()[0]
