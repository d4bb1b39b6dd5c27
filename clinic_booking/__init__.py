"""Clinic booking package exposing the Flask application factory."""

from __future__ import annotations

import atexit
import os
from pathlib import Path

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .blueprints import register_blueprints
from .cli import register_cli
from .extensions import db, init_extensions
from .services.bootstrap import ensure_base_tables
from .services.errors import record_exception
from .services.policy import BookingPolicy

APP_HOST = "127.0.0.1"
APP_PORT = 5001


def _data_root(override: str | None) -> Path:
    root = Path(override) if override else Path.cwd() / "data"
    (root / "logs").mkdir(parents=True, exist_ok=True)
    return root


def _flag(name: str, default: str = "1") -> bool:
    return os.getenv(name, default).strip().lower() not in {"0", "false", "no", "off"}


def create_app() -> Flask:
    data_root = _data_root(os.getenv("CLINIC_DATA_ROOT"))

    db_path = os.getenv("CLINIC_DB_PATH") or str(data_root / "bookings.db")
    database_uri = os.getenv("CLINIC_DATABASE_URL") or f"sqlite:///{db_path}"

    secret_key = os.getenv("CLINIC_SECRET_KEY")
    if not secret_key:
        secret_key = os.urandom(32)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=secret_key,
        SQLALCHEMY_DATABASE_URI=database_uri,
        DATA_ROOT=str(data_root),
        STORAGE_TIMEOUT_SECONDS=float(os.getenv("STORAGE_TIMEOUT_SECONDS", "5")),
        CLINIC_TIMEZONE=os.getenv("CLINIC_TIMEZONE", "Africa/Cairo"),
        BOOKING_WINDOW_START=os.getenv("BOOKING_WINDOW_START", "08:15"),
        BOOKING_WINDOW_END=os.getenv("BOOKING_WINDOW_END", "14:30"),
        BOOKING_DEFAULT_CAPACITY=int(os.getenv("BOOKING_DEFAULT_CAPACITY", "10")),
        BOOKING_CAPACITY_RULES=os.getenv("BOOKING_CAPACITY_RULES", "14:00-14:30=5"),
        BOOKING_SEARCH_STEP_MINUTES=int(os.getenv("BOOKING_SEARCH_STEP_MINUTES", "15")),
        DOCTOR_PROXIMITY_MINUTES=int(os.getenv("DOCTOR_PROXIMITY_MINUTES", "15")),
        RATELIMIT_ENABLED=_flag("CLINIC_RATELIMIT_ENABLED"),
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        BOOKING_MUTATION_RATE_LIMIT=os.getenv("BOOKING_MUTATION_RATE_LIMIT", "30 per minute"),
    )
    app.logger.setLevel(os.getenv("CLINIC_LOG_LEVEL", "INFO").upper())

    # Fail at startup on a malformed calendar instead of on the first booking.
    BookingPolicy.from_config(app.config)

    init_extensions(app)
    ensure_base_tables(db.engine)
    register_blueprints(app)
    register_cli(app)
    atexit.register(db.dispose)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        kind = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"success": False, "error": kind, "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        record_exception("request", exc)
        return jsonify({"success": False, "error": "server_error", "message": "Internal server error."}), 500

    return app


__all__ = ["create_app", "APP_HOST", "APP_PORT"]
