"""Doctor booking endpoints."""

from __future__ import annotations

from flask import Blueprint, jsonify

from clinic_booking.extensions import db
from clinic_booking.forms.bookings import DoctorBookingForm, DoctorBookingPatchForm
from clinic_booking.services.bookings import parse_booking_id
from clinic_booking.services.doctor_bookings import DoctorBookingService
from clinic_booking.services.errors import BookingError
from clinic_booking.services.policy import booking_policy

from ..responses import booking_mutations, error_response, json_object

bp = Blueprint("doctor_bookings", __name__, url_prefix="/api/doctors_booking")


def _service() -> DoctorBookingService:
    return DoctorBookingService(db, booking_policy())


@bp.route("", methods=["GET"], endpoint="list")
def list_bookings():
    """Active doctor bookings; stale rows are purged before listing."""
    try:
        bookings = _service().list_all()
    except BookingError as exc:
        return error_response(exc, "doctors_booking.list")
    return jsonify(bookings)


@bp.route("", methods=["POST"], endpoint="create")
@booking_mutations
def create_booking():
    try:
        json_object()
        fields = DoctorBookingForm().validated()
        booking = _service().create(fields)
    except BookingError as exc:
        return error_response(exc, "doctors_booking.create")
    return jsonify({"success": True, "message": "Appointment booked successfully.", "booking": booking}), 201


@bp.route("/<booking_id>", methods=["PATCH"], endpoint="update")
@booking_mutations
def update_booking(booking_id: str):
    try:
        parsed_id = parse_booking_id(booking_id)
        payload = json_object()
        changes = DoctorBookingPatchForm().validated_patch(payload)
        booking = _service().update(parsed_id, changes)
    except BookingError as exc:
        return error_response(exc, "doctors_booking.update")
    return jsonify({"success": True, "message": "Appointment updated successfully.", "booking": booking})


@bp.route("/<booking_id>", methods=["DELETE"], endpoint="delete")
@booking_mutations
def delete_booking(booking_id: str):
    try:
        _service().delete(parse_booking_id(booking_id))
    except BookingError as exc:
        return error_response(exc, "doctors_booking.delete")
    return jsonify({"success": True, "message": "Appointment deleted successfully."})


@bp.route("/email/<email>", methods=["GET"], endpoint="by_email")
def bookings_for_email(email: str):
    try:
        bookings = _service().for_email(email)
    except BookingError as exc:
        return error_response(exc, "doctors_booking.by_email")
    return jsonify(bookings)
