"""
Runtime configuration for the event scheduler backend.

All settings are read once at startup into an immutable `Settings` object
which is handed to the identity and membership managers explicitly.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://localhost:5173"


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration.

    Attributes:
        database_url (str): psycopg2 DSN for the PostgreSQL store.
        jwt_secret (str): Server-held secret used to sign session tokens.
        token_expiration_minutes (int): Lifetime of an issued token.
        db_connect_timeout (int): Seconds to wait when opening a connection.
        db_statement_timeout_ms (int): Server-side limit for a single statement.
        cors_origins (tuple): Origins allowed to call the API from a browser.
        port (int): Port used by the development server.
    """

    database_url: str
    jwt_secret: str
    token_expiration_minutes: int = 1440  # Default 24 hours
    db_connect_timeout: int = 5
    db_statement_timeout_ms: int = 5000
    cors_origins: Tuple[str, ...] = tuple(DEFAULT_CORS_ORIGINS.split(","))
    port: int = 5050


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build `Settings` from the environment, reading a .env file first.

    Args:
        env_file (str, optional): Explicit path to a .env file.

    Returns:
        Settings: The loaded configuration.

    Raises:
        RuntimeError: If a required variable is missing or malformed.
    """
    load_dotenv(env_file)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        raise RuntimeError("JWT_SECRET is missing. Set it in .env")

    origins = os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)

    return Settings(
        database_url=database_url,
        jwt_secret=jwt_secret,
        token_expiration_minutes=_int_env("TOKEN_EXPIRATION_MINUTES", 1440),
        db_connect_timeout=_int_env("DB_CONNECT_TIMEOUT", 5),
        db_statement_timeout_ms=_int_env("DB_STATEMENT_TIMEOUT_MS", 5000),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        port=_int_env("GATEWAY_PORT", 5050),
    )
