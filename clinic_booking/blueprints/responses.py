"""JSON helpers shared by the booking API blueprints."""

from __future__ import annotations

from typing import Any

from flask import current_app, jsonify, request

from clinic_booking.extensions import limiter
from clinic_booking.services.errors import BookingError, BookingValidationError, StorageError, record_exception


def json_object() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise BookingValidationError("invalid_body", "Request body must be a JSON object.")
    return payload


def error_response(exc: BookingError, context: str):
    if isinstance(exc, StorageError):
        record_exception(context, exc)
        return jsonify(StorageError().to_dict()), StorageError.status_code
    return jsonify(exc.to_dict()), exc.status_code


def mutation_limit() -> str:
    return current_app.config["BOOKING_MUTATION_RATE_LIMIT"]


# One budget for every create, update and delete across both flows.
booking_mutations = limiter.shared_limit(mutation_limit, scope="booking-mutations")
