"""Duplicate and overlap detection for proposed bookings.

Rules run in order and the first match wins. Each rule is a separate
ledger query.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from clinic_booking.services.clock import format_short_label, minute_of_day
from clinic_booking.services.errors import BookingConflict
from clinic_booking.services.ledger import BookingLedger


@dataclass(frozen=True)
class Candidate:
    """A proposed slot, optionally excluding the booking being edited."""

    day: str
    time: str
    subject: str
    patient_id: int | None = None
    exclude_id: int | None = None


Rule = Callable[[Candidate], "BookingConflict | None"]


class ConflictDetector:
    """Small rule engine over a booking ledger."""

    def __init__(self, ledger: BookingLedger, rules: Sequence[Rule]) -> None:
        self.ledger = ledger
        self.rules = list(rules)

    def check(self, candidate: Candidate) -> None:
        for rule in self.rules:
            conflict = rule(candidate)
            if conflict is not None:
                raise conflict


def duplicate_slot(ledger: BookingLedger) -> Rule:
    subject_column = ledger.model.subject_column

    def _rule(candidate: Candidate) -> BookingConflict | None:
        if ledger.exists(
            exclude_id=candidate.exclude_id,
            appointment_date=candidate.day,
            appointment_time=candidate.time,
            **{subject_column: candidate.subject},
        ):
            return BookingConflict(
                "duplicate_slot",
                "Duplicate booking for the same resource at the same date and time.",
            )
        return None

    return _rule


def patient_provider_duplicate(ledger: BookingLedger) -> Rule:
    def _rule(candidate: Candidate) -> BookingConflict | None:
        if candidate.patient_id is None:
            return None
        if ledger.exists(
            exclude_id=candidate.exclude_id,
            patient_id=candidate.patient_id,
            doctor_name=candidate.subject,
        ):
            return BookingConflict(
                "patient_provider_duplicate",
                "This patient already has a booking with this doctor.",
            )
        return None

    return _rule


def patient_time_clash(ledger: BookingLedger) -> Rule:
    def _rule(candidate: Candidate) -> BookingConflict | None:
        if candidate.patient_id is None:
            return None
        if ledger.exists(
            exclude_id=candidate.exclude_id,
            patient_id=candidate.patient_id,
            appointment_date=candidate.day,
            appointment_time=candidate.time,
        ):
            return BookingConflict(
                "patient_time_clash",
                "This patient already has a booking at this time with another doctor.",
            )
        return None

    return _rule


def provider_too_close(ledger: BookingLedger, threshold_minutes: int) -> Rule:
    def _rule(candidate: Candidate) -> BookingConflict | None:
        requested = minute_of_day(candidate.time)
        times = ledger.times_for_subject(candidate.day, candidate.subject, exclude_id=candidate.exclude_id)
        clashing = [minute_of_day(value) for value in times if abs(minute_of_day(value) - requested) < threshold_minutes]
        if not clashing:
            return None
        return BookingConflict(
            "provider_too_close",
            f"The doctor already has an appointment within {threshold_minutes} minutes.",
            suggested_time=format_short_label(max(clashing) + threshold_minutes),
        )

    return _rule


def vaccine_detector(ledger: BookingLedger) -> ConflictDetector:
    return ConflictDetector(ledger, [duplicate_slot(ledger)])


def doctor_detector(ledger: BookingLedger, threshold_minutes: int) -> ConflictDetector:
    return ConflictDetector(
        ledger,
        [
            duplicate_slot(ledger),
            patient_provider_duplicate(ledger),
            patient_time_clash(ledger),
            provider_too_close(ledger, threshold_minutes),
        ],
    )
