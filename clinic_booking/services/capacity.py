"""Capacity-aware slot allocation with forward search for a free slot."""

from __future__ import annotations

from dataclasses import dataclass

from clinic_booking.services.clock import time_from_minutes
from clinic_booking.services.errors import BookingConflict
from clinic_booking.services.ledger import BookingLedger
from clinic_booking.services.policy import BookingPolicy
from clinic_booking.services.window import SlotInstant

COMMIT = "commit"
SUGGEST = "suggest"
EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class Allocation:
    outcome: str
    suggested_time: str | None = None

    @property
    def committed(self) -> bool:
        return self.outcome == COMMIT

    def raise_for_outcome(self) -> None:
        if self.outcome == SUGGEST:
            raise BookingConflict(
                "capacity",
                "No available slots at this time.",
                suggested_time=self.suggested_time,
            )
        if self.outcome == EXHAUSTED:
            raise BookingConflict(
                "capacity",
                "No available slots for the selected date. Please choose another day.",
            )


class SlotAllocator:
    """Checks hourly occupancy, then searches exact slots in fixed steps.

    The first check counts every booking in the requested hour. The
    search counts bookings at each exact candidate time instead.
    """

    def __init__(self, ledger: BookingLedger, policy: BookingPolicy) -> None:
        self.ledger = ledger
        self.policy = policy

    def allocate(self, slot: SlotInstant, *, exclude_id: int | None = None) -> Allocation:
        capacity = self.policy.capacity_at(slot.hour, slot.minute)
        booked = self.ledger.count_in_hour(slot.day, slot.hour, exclude_id=exclude_id)
        if booked < capacity:
            return Allocation(COMMIT)

        suggestion = self.next_open_slot(slot.day, slot.total_minutes, exclude_id=exclude_id)
        if suggestion is None:
            return Allocation(EXHAUSTED)
        return Allocation(SUGGEST, suggestion)

    def next_open_slot(self, day: str, start_minutes: int, *, exclude_id: int | None = None) -> str | None:
        step = self.policy.search_step_minutes
        candidate = start_minutes + step
        while candidate <= self.policy.window_end:
            hour, minute = divmod(candidate, 60)
            time_value = time_from_minutes(candidate)
            occupancy = self.ledger.count_at(day, time_value, exclude_id=exclude_id)
            if occupancy < self.policy.capacity_at(hour, minute):
                return time_value
            candidate += step
        return None
