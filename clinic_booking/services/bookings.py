"""Shared pipeline pieces for the vaccine and doctor booking flows."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import re
from typing import Any, Callable, Mapping, Sequence

from clinic_booking.extensions import SQLAlchemyEngine
from clinic_booking.models import Base
from clinic_booking.services.clock import format_clock_label, format_timestamp
from clinic_booking.services.errors import BookingNotFound, BookingValidationError
from clinic_booking.services.ledger import BookingLedger, BookingPatch
from clinic_booking.services.policy import BookingPolicy
from clinic_booking.services.window import SlotInstant, parse_day, require_time, validate_window

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("appointment_date", "appointment_time")
DATE_FIELDS = ("appointment_date", "birth_date")

# largest value an SQLite INTEGER primary key can hold
MAX_BOOKING_ID = 2**63 - 1
_BOOKING_ID = re.compile(r"^[0-9]+$")


def parse_booking_id(raw: object) -> int:
    text = str(raw).strip()
    if not _BOOKING_ID.match(text):
        raise BookingValidationError("invalid_id", "Valid booking ID is required.")
    booking_id = int(text)
    if not 0 < booking_id <= MAX_BOOKING_ID:
        raise BookingValidationError("invalid_id", "Valid booking ID is required.")
    return booking_id


def require_fields(fields: Mapping[str, Any], names: Sequence[str]) -> None:
    missing = [name for name in names if _blank(fields.get(name))]
    if missing:
        raise BookingValidationError("missing_fields", "All fields are required.", fields=missing)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BookingService:
    """Common create/update/delete/list plumbing over one ledger."""

    model: type[Base]
    subject_field: str
    patchable: tuple[str, ...] = ()

    def __init__(
        self,
        store: SQLAlchemyEngine,
        policy: BookingPolicy,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.policy = policy
        self.ledger = BookingLedger(store, self.model)
        self._now = now

    def now(self) -> datetime:
        if self._now is not None:
            return self._now()
        return datetime.now(self.policy.zone)

    def _validate_slot(self, day: Any, raw_time: Any) -> SlotInstant:
        return validate_window(parse_day(day), require_time(raw_time), self.now(), self.policy)

    def _require_booking(self, booking_id: int) -> dict[str, Any]:
        row = self.ledger.get(booking_id)
        if row is None:
            raise BookingNotFound("booking_not_found", "Booking not found.")
        return row

    def _coerce_patch(self, patch: BookingPatch) -> BookingPatch:
        changes: dict[str, Any] = {}
        blank = [name for name, value in patch.values.items() if _blank(value)]
        if blank:
            raise BookingValidationError("missing_fields", "Updated fields must not be empty.", fields=sorted(blank))
        for name, value in patch.values.items():
            if name == "appointment_time":
                changes[name] = require_time(value)
            elif name in DATE_FIELDS:
                changes[name] = parse_day(value)
            elif isinstance(value, str):
                changes[name] = value.strip()
        return patch.replace(**changes)

    def _slot_changed(self, existing: Mapping[str, Any], patch: BookingPatch) -> bool:
        fields = SLOT_FIELDS + (self.subject_field,)
        return any(patch.has(name) and patch.get(name) != existing[name] for name in fields)

    def _apply_patch(self, booking_id: int, existing: dict[str, Any], patch: BookingPatch) -> dict[str, Any]:
        if not self.ledger.update(booking_id, patch):
            raise BookingNotFound("booking_not_found", "Booking not found.")
        logger.info("%s %s updated (%s)", self.model.__tablename__, booking_id, ", ".join(sorted(patch.values)))
        merged = dict(existing)
        merged.update(patch.values)
        return self.serialize(merged)

    def delete(self, booking_id: int) -> None:
        if self.ledger.get(booking_id) is None:
            raise BookingNotFound("booking_not_found", "Booking not found.")
        if not self.ledger.delete_by(id=booking_id):
            raise BookingNotFound("booking_not_found", "Booking not found.")
        logger.info("%s %s deleted", self.model.__tablename__, booking_id)

    def serialize(self, row: Mapping[str, Any]) -> dict[str, Any]:
        data = dict(row)
        data["appointment_time"] = format_clock_label(row["appointment_time"])
        data["created_at"] = format_timestamp(row["created_at"], self.policy.zone)
        return data

    def _insert(self, values: dict[str, Any]) -> dict[str, Any]:
        values = dict(values, created_at=utcnow_iso())
        booking_id = self.ledger.insert(values)
        logger.info("%s %s created", self.model.__tablename__, booking_id)
        return self.serialize(dict(values, id=booking_id))
