"""
Error taxonomy shared by the identity and membership managers.

Each error carries a short human-readable message and the HTTP status the
gateway renders it with.
"""


class SchedulerError(Exception):
    """Base class for every caller-visible failure."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(SchedulerError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(SchedulerError):
    """Bad credentials or an unusable session token."""

    status_code = 401


class NotFoundError(SchedulerError):
    status_code = 404


class ConflictError(SchedulerError):
    """A user tried to join an event they already joined."""

    status_code = 409


class StoreError(SchedulerError):
    """
    The database failed (connection loss, timeout, ...).

    The message is always generic; details are logged, never returned.
    """

    status_code = 500


def text_field(value: object, field: str) -> str:
    """
    Return `value` as a string for validation; None becomes "".

    Raises:
        ValidationError: The value is present but not a string.
    """
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    return value
