from __future__ import annotations

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.extensions import db
from clinic_booking.services.errors import record_exception

bp = Blueprint("core", __name__)


@bp.route("/api/health", methods=["GET"], endpoint="health")
def health():
    """Report whether the storage round trip works."""
    try:
        with db.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        record_exception("core.health", exc)
        return jsonify({"status": "error", "database": "unavailable"}), 503
    return jsonify({"status": "ok", "database": "ok"})
