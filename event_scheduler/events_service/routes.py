"""
Events service routes: create and read events, join and leave them.
Reads are public; writes require a bearer token.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, g, jsonify, request

from event_scheduler.auth_service.utils import get_json_body, login_required
from event_scheduler.events_service.membership import EventMembershipManager

events_bp = Blueprint("events", __name__)


def get_membership_manager() -> EventMembershipManager:
    return current_app.extensions["membership"]


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


@events_bp.route("/", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all events ordered by date and time.

    Each event includes creator_name and attendee_count.

    Returns:
        200: List of event objects.
        500: Database error.
    """
    return jsonify(get_membership_manager().list_events()), 200


@events_bp.route("/<int:event_id>", methods=["GET"])
def get_event(event_id: int) -> Tuple[Response, int]:
    """
    Get a single event by ID, with its attendees in join order.

    Returns:
        200: Event object with an `attendees` list.
        404: Event not found.
    """
    return jsonify(get_membership_manager().get_event(event_id)), 200


@events_bp.route("/", methods=["POST"])
@login_required
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the authenticated user.

    Expects JSON with title, event_date (YYYY-MM-DD), event_time (HH:MM),
    location and an optional description.

    Returns:
        201: { "message": str, "event": {...} }
        400: Validation error.
        401: Missing or invalid token.
        500: Server error.
    """
    data: Dict[str, Any] = get_json_body()

    event = get_membership_manager().create_event(
        g.user_id,
        data.get("title"),
        data.get("event_date"),
        data.get("event_time"),
        data.get("location"),
        description=data.get("description"),
    )

    return jsonify({"message": "Event created successfully", "event": event}), 201


@events_bp.route("/<int:event_id>/join", methods=["POST"])
@login_required
def join_event(event_id: int) -> Tuple[Response, int]:
    """
    RSVP the authenticated user to an event.

    Returns:
        200: Joined.
        404: Event not found.
        409: Already joined.
    """
    get_membership_manager().join(event_id, g.user_id)
    return jsonify({"message": "Successfully joined the event"}), 200


@events_bp.route("/<int:event_id>/leave", methods=["POST"])
@login_required
def leave_event(event_id: int) -> Tuple[Response, int]:
    """Remove the authenticated user's RSVP; succeeds even if there was none."""
    get_membership_manager().leave(event_id, g.user_id)
    return jsonify({"message": "Successfully left the event"}), 200
