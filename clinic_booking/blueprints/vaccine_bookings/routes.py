"""Vaccine booking endpoints."""

from __future__ import annotations

from flask import Blueprint, jsonify

from clinic_booking.extensions import db
from clinic_booking.forms.bookings import VaccineBookingForm, VaccineBookingPatchForm
from clinic_booking.services.bookings import parse_booking_id
from clinic_booking.services.errors import BookingError
from clinic_booking.services.policy import booking_policy
from clinic_booking.services.vaccine_bookings import VaccineBookingService

from ..responses import booking_mutations, error_response, json_object

bp = Blueprint("vaccine_bookings", __name__, url_prefix="/api/vaccines_booking")


def _service() -> VaccineBookingService:
    return VaccineBookingService(db, booking_policy())


@bp.route("", methods=["GET"], endpoint="list")
def list_bookings():
    try:
        bookings = _service().list_all()
    except BookingError as exc:
        return error_response(exc, "vaccines_booking.list")
    return jsonify(bookings)


@bp.route("", methods=["POST"], endpoint="create")
@booking_mutations
def create_booking():
    try:
        json_object()
        fields = VaccineBookingForm().validated()
        booking = _service().create(fields)
    except BookingError as exc:
        return error_response(exc, "vaccines_booking.create")
    return jsonify({"success": True, "message": "Booking successful.", "booking": booking}), 201


@bp.route("/<booking_id>", methods=["PATCH"], endpoint="update")
@booking_mutations
def update_booking(booking_id: str):
    try:
        parsed_id = parse_booking_id(booking_id)
        payload = json_object()
        changes = VaccineBookingPatchForm().validated_patch(payload)
        booking = _service().update(parsed_id, changes)
    except BookingError as exc:
        return error_response(exc, "vaccines_booking.update")
    return jsonify({"success": True, "message": "Booking updated successfully.", "booking": booking})


@bp.route("/<booking_id>", methods=["DELETE"], endpoint="delete")
@booking_mutations
def delete_booking(booking_id: str):
    try:
        _service().delete(parse_booking_id(booking_id))
    except BookingError as exc:
        return error_response(exc, "vaccines_booking.delete")
    return jsonify({"success": True, "message": "Booking deleted successfully."})


@bp.route("/patient/<national_id>", methods=["GET"], endpoint="by_national_id")
def bookings_for_patient(national_id: str):
    """All bookings registered under one national ID, newest first."""
    try:
        bookings = _service().for_national_id(national_id)
    except BookingError as exc:
        return error_response(exc, "vaccines_booking.by_national_id")
    return jsonify(bookings)
