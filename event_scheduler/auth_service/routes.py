"""
Authentication service route handlers.

Provides routes for:
- User registration
- User login
- Profile retrieval (/me)

Credential checks and token handling live in `auth_service.identity`;
errors raised there are rendered by the gateway's error handler.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, g, jsonify, request

from event_scheduler.auth_service.utils import get_identity_manager, get_json_body, login_required

auth_bp = Blueprint("auth", __name__)


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """Log every incoming request method and path (never headers, they carry tokens)."""
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- REGISTER ---
@auth_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - name (str)
    - email (str): Unique email address.
    - password (str): Minimum 6 characters.

    Returns:
        201: JSON with token and the public user record.
        400: Missing fields, invalid input, or email already registered.
        500: Server-side error (hashing or database).
    """
    data: Dict[str, Any] = get_json_body()

    token, user = get_identity_manager().register(
        data.get("name"),
        data.get("email"),
        data.get("password"),
    )

    return jsonify({"token": token, "user": user}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a JWT.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with token and the public user record.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
        500: Database error.
    """
    data: Dict[str, Any] = get_json_body()

    token, user = get_identity_manager().login(data.get("email"), data.get("password"))

    return jsonify({"token": token, "user": user}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
@login_required
def get_current_user() -> Tuple[Response, int]:
    """
    Retrieve the public record of the authenticated user.

    Requires Authorization header: Bearer <token>
    """
    return jsonify(get_identity_manager().get_user(g.user_id)), 200
