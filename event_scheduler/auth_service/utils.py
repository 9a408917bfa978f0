"""
Shared helpers for route handlers.
Resolves the bearer token of the current request into a user id and
reads the JSON request body.
"""

from functools import wraps
from typing import Any, Callable, Dict

from flask import current_app, g, request

from event_scheduler.auth_service.identity import IdentityManager
from event_scheduler.errors import ValidationError


def get_identity_manager() -> IdentityManager:
    return current_app.extensions["identity"]


def verify_token_from_request() -> int:
    """
    Verify the JWT in the Authorization header.

    Returns:
        int: The authenticated user id.

    Raises:
        AuthError: Missing, malformed, expired, or badly signed token.
    """
    identity = get_identity_manager()
    token = identity.token_from_header(request.headers.get("Authorization"))
    return identity.verify_token(token)


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """
    Reject the request with 401 before the view runs unless it carries a
    valid bearer token. The user id is stored on `g.user_id`.
    """

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        g.user_id = verify_token_from_request()
        return view(*args, **kwargs)

    return wrapper


def get_json_body() -> Dict[str, Any]:
    """
    Return the request's JSON object; a missing body counts as empty.

    Raises:
        ValidationError: The body is JSON but not an object (e.g. a list).
    """
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")
    return data
