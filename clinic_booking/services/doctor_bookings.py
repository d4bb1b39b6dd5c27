"""Doctor booking pipeline.

Stale rows (date/time already past in the clinic zone) are purged at the
start of every create and list call. Doctor bookings have no capacity
model; conflicts are patient-side clashes and provider proximity.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from clinic_booking.models import DoctorBooking
from clinic_booking.services import patients
from clinic_booking.services.bookings import BookingService, require_fields
from clinic_booking.services.conflicts import Candidate, doctor_detector
from clinic_booking.services.errors import BookingNotFound, BookingValidationError
from clinic_booking.services.ledger import BookingPatch
from clinic_booking.services.window import parse_day

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "patient_email",
    "doctor_name",
    "appointment_date",
    "appointment_time",
    "birth_date",
    "patient_name",
    "patient_phone",
    "patient_gender",
)

PATCHABLE_FIELDS = (
    "doctor_name",
    "appointment_date",
    "appointment_time",
    "birth_date",
    "patient_name",
    "patient_phone",
    "patient_gender",
)


class DoctorBookingService(BookingService):
    model = DoctorBooking
    subject_field = "doctor_name"
    patchable = PATCHABLE_FIELDS

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.detector = doctor_detector(self.ledger, self.policy.proximity_minutes)

    def purge_stale(self) -> int:
        removed = self.ledger.purge_stale(self.now().astimezone(self.policy.zone))
        if removed:
            logger.info("Purged %s stale doctor bookings", removed)
        return removed

    def create(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        self.purge_stale()
        require_fields(fields, REQUIRED_FIELDS)
        slot = self._validate_slot(fields["appointment_date"], fields["appointment_time"])
        birth_date = parse_day(fields["birth_date"])
        doctor_name = str(fields["doctor_name"]).strip()

        patient = patients.find_by_email(self.store, str(fields["patient_email"]))
        if patient is None:
            raise BookingNotFound("patient_not_found", "Patient email not found.")

        self.detector.check(Candidate(slot.day, slot.time, doctor_name, patient_id=patient["patient_id"]))

        return self._insert(
            {
                "patient_id": patient["patient_id"],
                "doctor_name": doctor_name,
                "appointment_date": slot.day,
                "appointment_time": slot.time,
                "birth_date": birth_date,
                "patient_name": str(fields["patient_name"]).strip(),
                "patient_phone": str(fields["patient_phone"]).strip(),
                "patient_email": patients.normalize_email(str(fields["patient_email"])),
                "patient_gender": str(fields["patient_gender"]).strip(),
            }
        )

    def update(self, booking_id: int, payload: Mapping[str, Any]) -> dict[str, Any]:
        patch = BookingPatch.from_payload(payload, self.patchable)
        existing = self._require_booking(booking_id)
        patch = self._coerce_patch(patch)

        if self._slot_changed(existing, patch):
            slot = self._validate_slot(
                patch.get("appointment_date", existing["appointment_date"]),
                patch.get("appointment_time", existing["appointment_time"]),
            )
            candidate = Candidate(
                slot.day,
                slot.time,
                patch.get("doctor_name", existing["doctor_name"]),
                patient_id=existing["patient_id"],
                exclude_id=booking_id,
            )
            self.detector.check(candidate)

        return self._apply_patch(booking_id, existing, patch)

    def list_all(self) -> list[dict[str, Any]]:
        self.purge_stale()
        return [self.serialize(row) for row in self.ledger.find_by()]

    def for_email(self, email: str) -> list[dict[str, Any]]:
        normalized = patients.normalize_email(email)
        if not normalized:
            raise BookingValidationError("missing_fields", "Email is required.", fields=["patient_email"])
        rows = self.ledger.find_by(order_by=("created_at",), descending=True, patient_email=normalized)
        return [self.serialize(row) for row in rows]
