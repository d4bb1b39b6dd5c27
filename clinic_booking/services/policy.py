"""Booking configuration: clinic zone, operating window and capacity table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
from zoneinfo import ZoneInfo

from flask import current_app


@dataclass(frozen=True)
class CapacityRule:
    """Capacity applied to every minute-of-day in ``[start, end]``."""

    start: int
    end: int
    capacity: int

    def covers(self, total_minutes: int) -> bool:
        return self.start <= total_minutes <= self.end


def _clock_minutes(value: str) -> int:
    try:
        hour_text, minute_text = value.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except ValueError as exc:
        raise ValueError(f"invalid clock value: {value!r}") from exc
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"invalid clock value: {value!r}")
    return hour * 60 + minute


def parse_capacity_rules(raw: str) -> tuple[CapacityRule, ...]:
    """Parse ``"HH:MM-HH:MM=N;..."`` into capacity rules."""

    rules = []
    for chunk in (raw or "").split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            span, capacity_text = chunk.split("=")
            start_text, end_text = span.split("-")
            capacity = int(capacity_text)
        except ValueError as exc:
            raise ValueError(f"invalid capacity rule: {chunk!r}") from exc
        start, end = _clock_minutes(start_text), _clock_minutes(end_text)
        if end < start or capacity < 0:
            raise ValueError(f"invalid capacity rule: {chunk!r}")
        rules.append(CapacityRule(start, end, capacity))
    return tuple(rules)


@dataclass(frozen=True)
class BookingPolicy:
    """Business calendar and capacity settings shared by both booking flows."""

    timezone: str = "Africa/Cairo"
    window_start: int = 8 * 60 + 15
    window_end: int = 14 * 60 + 30
    default_capacity: int = 10
    capacity_rules: tuple[CapacityRule, ...] = field(
        default_factory=lambda: (CapacityRule(14 * 60, 14 * 60 + 30, 5),)
    )
    search_step_minutes: int = 15
    proximity_minutes: int = 15

    def __post_init__(self) -> None:
        if self.window_end < self.window_start:
            raise ValueError("booking window ends before it starts")
        if self.search_step_minutes <= 0:
            raise ValueError("search step must be positive")
        if self.proximity_minutes < 0:
            raise ValueError("proximity threshold must not be negative")
        ZoneInfo(self.timezone)

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def within_window(self, total_minutes: int) -> bool:
        return self.window_start <= total_minutes <= self.window_end

    def capacity_at(self, hour: int, minute: int) -> int:
        total_minutes = hour * 60 + minute
        for rule in self.capacity_rules:
            if rule.covers(total_minutes):
                return rule.capacity
        return self.default_capacity

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BookingPolicy":
        return cls(
            timezone=config.get("CLINIC_TIMEZONE", "Africa/Cairo"),
            window_start=_clock_minutes(config.get("BOOKING_WINDOW_START", "08:15")),
            window_end=_clock_minutes(config.get("BOOKING_WINDOW_END", "14:30")),
            default_capacity=int(config.get("BOOKING_DEFAULT_CAPACITY", 10)),
            capacity_rules=parse_capacity_rules(config.get("BOOKING_CAPACITY_RULES", "14:00-14:30=5")),
            search_step_minutes=int(config.get("BOOKING_SEARCH_STEP_MINUTES", 15)),
            proximity_minutes=int(config.get("DOCTOR_PROXIMITY_MINUTES", 15)),
        )


def booking_policy() -> BookingPolicy:
    return BookingPolicy.from_config(current_app.config)
