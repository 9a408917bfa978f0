"""
Identity manager: registration, login and session tokens.

Passwords are hashed with Argon2; sessions are stateless HS256 JWTs signed
with the configured secret. There is no revocation list, so an issued token
stays valid until it expires.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
import psycopg2
import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from event_scheduler.config import Settings
from event_scheduler.database.db_connection import Database
from event_scheduler.errors import (
    AuthError,
    NotFoundError,
    SchedulerError,
    StoreError,
    ValidationError,
    text_field,
)

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
PASSWORD_MIN_LENGTH = 6
INVALID_CREDENTIALS = "Invalid credentials"


def public_user(row: Any) -> Dict[str, Any]:
    """
    Convert a users row into the record returned to callers.
    The password hash is never part of it.
    """
    created_at = row.get("created_at")
    return {
        "id": row["id"],
        "name": row["name"],
        "email": row["email"],
        "created_at": created_at.isoformat() if created_at else None,
    }


class IdentityManager:
    """Turns credentials into tokens and tokens back into user ids."""

    def __init__(self, settings: Settings, db: Database, hasher: Optional[PasswordHasher] = None) -> None:
        self.secret = settings.jwt_secret
        self.token_lifetime = timedelta(minutes=settings.token_expiration_minutes)
        self.db = db
        self.ph = hasher or PasswordHasher()
        # Verified against when the email is unknown so both login failures cost the same
        self._dummy_hash = self.ph.hash("not-a-real-password")

    # --- TOKENS ---
    def create_token(self, user_id: int) -> str:
        """
        Generates a new JWT for a given user.

        Args:
            user_id (int): The unique ID of the user.

        Returns:
            str: Encoded JWT string.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self.token_lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: Optional[str]) -> int:
        """
        Validate a JWT and return the user id embedded in it.

        Raises:
            AuthError: If the token is missing, malformed, expired, or badly signed.
        """
        if not token:
            raise AuthError("Missing token")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            raise AuthError("Invalid token")

    @staticmethod
    def token_from_header(header: Optional[str]) -> str:
        """Extract the credential from an `Authorization: Bearer <token>` header."""
        if not header or not header.startswith("Bearer "):
            raise AuthError("Missing token")
        token = header.split(" ", 1)[1].strip()
        if not token:
            raise AuthError("Missing token")
        return token

    # --- PASSWORDS ---
    def hash_password(self, password: str) -> str:
        try:
            return self.ph.hash(password)
        except HashingError:
            logger.exception("Password hashing failed")
            raise SchedulerError("Password hashing failed")

    def check_password(self, password_hash: str, password: str) -> bool:
        try:
            return self.ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    # --- OPERATIONS ---
    def register(self, name: str, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        """
        Register a new user and log them in.

        Args:
            name (str): Display name.
            email (str): Unique email address (stored lower-cased).
            password (str): At least 6 characters.

        Returns:
            tuple: (token, public user record)

        Raises:
            ValidationError: Missing fields, bad email, short password, or email taken.
            StoreError: The database failed.
        """
        name = text_field(name, "name").strip()
        email = text_field(email, "email").strip().lower()
        password = text_field(password, "password")

        if not name or not email or not password:
            raise ValidationError("Name, email, and password are required")
        if "@" not in email:
            raise ValidationError("Invalid email address")
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")

        pw_hash = self.hash_password(password)

        sql = """
            INSERT INTO users (name, email, password_hash)
            VALUES (%s, %s, %s)
            RETURNING id, name, email, created_at;
        """

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (name, email, pw_hash))
                    row = cur.fetchone()
        except psycopg2.errors.UniqueViolation:
            raise ValidationError("Email already registered")
        except psycopg2.Error as e:
            logger.exception("Registration failed")
            raise StoreError("Registration failed") from e

        user = public_user(row)
        logger.info(f"Registered user {user['id']}")
        return self.create_token(user["id"]), user

    def login(self, email: str, password: str) -> Tuple[str, Dict[str, Any]]:
        """
        Authenticate a user and return a fresh token.

        Unknown email and wrong password fail identically.

        Raises:
            ValidationError: Missing credentials.
            AuthError: Invalid credentials.
            StoreError: The database failed.
        """
        email = text_field(email, "email").strip().lower()
        password = text_field(password, "password")

        if not email or not password:
            raise ValidationError("Email and password required")

        sql = "SELECT id, name, email, password_hash, created_at FROM users WHERE email = %s;"

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (email,))
                    row = cur.fetchone()
        except psycopg2.Error as e:
            logger.exception("Login lookup failed")
            raise StoreError("Login failed") from e

        if row is None:
            self.check_password(self._dummy_hash, password)
            logger.warning("Rejected login for unknown email")
            raise AuthError(INVALID_CREDENTIALS)

        if not self.check_password(row["password_hash"], password):
            logger.warning(f"Rejected login for user {row['id']}")
            raise AuthError(INVALID_CREDENTIALS)

        user = public_user(row)
        return self.create_token(user["id"]), user

    def get_user(self, user_id: int) -> Dict[str, Any]:
        """
        Look up the public record of a user.

        Raises:
            NotFoundError: No such user.
            StoreError: The database failed.
        """
        sql = "SELECT id, name, email, created_at FROM users WHERE id = %s;"

        try:
            with self.db.connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(sql, (user_id,))
                    row = cur.fetchone()
        except psycopg2.Error as e:
            logger.exception("User lookup failed")
            raise StoreError("Could not retrieve user") from e

        if row is None:
            raise NotFoundError("User not found")
        return public_user(row)
