"""Vaccine booking pipeline: window, duplicate check, capacity, commit.

Vaccine bookings keep their historical rows; nothing here purges.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from clinic_booking.models import VaccineBooking
from clinic_booking.services.bookings import BookingService, require_fields
from clinic_booking.services.capacity import SlotAllocator
from clinic_booking.services.conflicts import Candidate, vaccine_detector
from clinic_booking.services.errors import BookingValidationError
from clinic_booking.services.ledger import BookingPatch
from clinic_booking.services.window import parse_day

REQUIRED_FIELDS = (
    "appointment_date",
    "appointment_time",
    "birth_date",
    "patient_name",
    "patient_phone",
    "national_id",
    "gender",
    "vaccine_name",
    "service",
    "distance",
    "location_detail",
)


def parse_distance(raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise BookingValidationError("invalid_distance", "Distance must be a number.") from exc
    if not math.isfinite(value):
        raise BookingValidationError("invalid_distance", "Distance must be a finite number.")
    if value < 0:
        raise BookingValidationError("invalid_distance", "Distance must not be negative.")
    return value


class VaccineBookingService(BookingService):
    model = VaccineBooking
    subject_field = "vaccine_name"
    patchable = REQUIRED_FIELDS

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.detector = vaccine_detector(self.ledger)
        self.allocator = SlotAllocator(self.ledger, self.policy)

    def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        require_fields(fields, REQUIRED_FIELDS)
        slot = self._validate_slot(fields["appointment_date"], fields["appointment_time"])
        birth_date = parse_day(fields["birth_date"])
        distance = parse_distance(fields["distance"])
        vaccine_name = str(fields["vaccine_name"]).strip()

        self.detector.check(Candidate(slot.day, slot.time, vaccine_name))
        self.allocator.allocate(slot).raise_for_outcome()

        return self._insert(
            {
                "appointment_date": slot.day,
                "appointment_time": slot.time,
                "vaccine_name": vaccine_name,
                "patient_name": str(fields["patient_name"]).strip(),
                "patient_phone": str(fields["patient_phone"]).strip(),
                "national_id": str(fields["national_id"]).strip(),
                "gender": str(fields["gender"]).strip(),
                "birth_date": birth_date,
                "service": str(fields["service"]).strip(),
                "distance": distance,
                "location_detail": str(fields["location_detail"]).strip(),
            }
        )

    def update(self, booking_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        patch = BookingPatch.from_payload(payload, self.patchable)
        existing = self._require_booking(booking_id)
        patch = self._coerce_patch(patch)
        if patch.has("distance"):
            patch = patch.replace(distance=parse_distance(patch.get("distance")))

        if self._slot_changed(existing, patch):
            slot = self._validate_slot(
                patch.get("appointment_date", existing["appointment_date"]),
                patch.get("appointment_time", existing["appointment_time"]),
            )
            vaccine_name = patch.get("vaccine_name", existing["vaccine_name"])
            self.detector.check(Candidate(slot.day, slot.time, vaccine_name, exclude_id=booking_id))
            self.allocator.allocate(slot, exclude_id=booking_id).raise_for_outcome()

        return self._apply_patch(booking_id, existing, patch)

    def list_all(self) -> list[dict[str, Any]]:
        return [self.serialize(row) for row in self.ledger.find_by()]

    def for_national_id(self, national_id: str) -> list[dict[str, Any]]:
        national_id = (national_id or "").strip()
        if not national_id:
            raise BookingValidationError("missing_fields", "National ID is required.", fields=["national_id"])
        rows = self.ledger.find_by(order_by=("created_at",), descending=True, national_id=national_id)
        return [self.serialize(row) for row in rows]
