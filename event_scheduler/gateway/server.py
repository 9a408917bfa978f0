"""
API gateway: combines the auth and events blueprints.
This is the local entrypoint for development.
"""

import logging
from typing import Optional, Tuple

import psycopg2
from flask import Flask, Response, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from event_scheduler.auth_service.identity import IdentityManager
from event_scheduler.auth_service.routes import auth_bp
from event_scheduler.config import Settings, load_settings
from event_scheduler.database.db_connection import Database
from event_scheduler.errors import SchedulerError
from event_scheduler.events_service.membership import EventMembershipManager
from event_scheduler.events_service.routes import events_bp

# Basic console logging during API requests
logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")


def register_error_handlers(app: Flask) -> None:
    """Render every failure as {"error": message} with a matching status."""

    @app.errorhandler(SchedulerError)
    def handle_scheduler_error(error: SchedulerError) -> Tuple[Response, int]:
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Response, int]:
        return jsonify({"error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception) -> Tuple[Response, int]:
        logging.exception("Unhandled error")
        return jsonify({"error": "Internal Server Error"}), 500


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> Flask:
    """
    Application factory for creating the Flask app.

    Args:
        settings (Settings, optional): Configuration; loaded from the environment if omitted.
        db (Database, optional): Store to use; built from `settings` if omitted.

    Returns:
        Flask: The configured Flask application.
    """
    settings = settings or load_settings()
    db = db or Database(settings)

    app = Flask(__name__)
    app.url_map.strict_slashes = False

    CORS(app, resources={
        r"/*": {
            "origins": list(settings.cors_origins),
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }
    })

    # Managers are built once and shared read-only by every request
    app.extensions["settings"] = settings
    app.extensions["db"] = db
    app.extensions["identity"] = IdentityManager(settings, db)
    app.extensions["membership"] = EventMembershipManager(db)

    # --- REGISTER BLUEPRINTS ---
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(events_bp, url_prefix="/events")
    register_error_handlers(app)
    logging.info("All blueprints registered successfully.")

    # --- BASIC HEALTH CHECKPOINTS ---
    @app.route("/")
    def ping():
        """
        Root URL for simple 'online' check.
        """
        return jsonify({"status": "gateway_ok", "message": "Event Scheduler API is running!"}), 200

    @app.route("/health")
    def health():
        """
        Health check endpoint.
        """
        return jsonify({"status": "ok"}), 200

    @app.route("/health/db")
    def health_db():
        """
        Database round-trip check.
        """
        try:
            now = db.ping()
        except psycopg2.Error:
            logging.exception("Database health check failed")
            return jsonify({"error": "Database connection failed"}), 500
        return jsonify({"message": "Database connection successful!", "timestamp": now.isoformat()}), 200

    return app


if __name__ == "__main__":
    settings = load_settings()
    app = create_app(settings)
    app.run(host="0.0.0.0", port=settings.port, debug=True)
