"""Appointment window validation in the clinic's time zone."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from clinic_booking.services.clock import format_short_label, normalize_time, parse_time
from clinic_booking.services.errors import BookingValidationError
from clinic_booking.services.policy import BookingPolicy


@dataclass(frozen=True)
class SlotInstant:
    """A validated booking instant plus the parts capacity logic needs."""

    instant: datetime
    day: str
    time: str

    @property
    def hour(self) -> int:
        return self.instant.hour

    @property
    def minute(self) -> int:
        return self.instant.minute

    @property
    def total_minutes(self) -> int:
        return self.instant.hour * 60 + self.instant.minute


def parse_day(raw: object) -> str:
    """Return an ISO ``YYYY-MM-DD`` string or raise ``invalid_date``."""

    try:
        return date.fromisoformat(str(raw).strip()).isoformat()
    except ValueError as exc:
        raise BookingValidationError("invalid_date", "Invalid booking date. Use YYYY-MM-DD.") from exc


def require_time(raw: object) -> str:
    normalized = normalize_time(raw)
    if normalized is None:
        raise BookingValidationError(
            "invalid_time",
            "Invalid time format. Use HH:mm, HH:mm:ss or HH:mm AM/PM.",
        )
    return normalized


def validate_window(day: str, normalized_time: str, now: datetime, policy: BookingPolicy) -> SlotInstant:
    """Combine date and time in the clinic zone and check past / operating hours."""

    zone = policy.zone
    parsed_day = date.fromisoformat(parse_day(day))
    instant = datetime.combine(parsed_day, parse_time(normalized_time), tzinfo=zone)
    if instant < now.astimezone(zone):
        raise BookingValidationError("past", "Booking date and time must be in the future.")

    slot = SlotInstant(instant=instant, day=parsed_day.isoformat(), time=normalized_time)
    if not policy.within_window(slot.total_minutes):
        raise BookingValidationError(
            "out_of_hours",
            "Appointments are only available between "
            f"{format_short_label(policy.window_start)} and {format_short_label(policy.window_end)}.",
        )
    return slot

