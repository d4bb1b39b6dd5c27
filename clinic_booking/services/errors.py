"""Booking error taxonomy and diagnostic error logging."""

from __future__ import annotations

from datetime import datetime, UTC
from pathlib import Path
import traceback
from typing import Sequence

from flask import current_app, has_app_context


class BookingError(Exception):
    """Base exception for booking operations."""

    status_code = 400
    default_message = "Booking request failed."

    def __init__(self, kind: str, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, object]:
        return {"success": False, "error": self.kind, "message": self.message}


class BookingValidationError(BookingError):
    """Raised for malformed or missing input."""

    def __init__(self, kind: str, message: str | None = None, *, fields: Sequence[str] = ()) -> None:
        super().__init__(kind, message)
        self.fields = list(fields)

    def to_dict(self) -> dict[str, object]:
        body = super().to_dict()
        if self.fields:
            body["fields"] = self.fields
        return body


class BookingConflict(BookingError):
    """Raised when a requested slot clashes with existing bookings."""

    status_code = 409
    default_message = "The requested slot is not available."

    def __init__(self, kind: str, message: str | None = None, *, suggested_time: str | None = None) -> None:
        super().__init__(kind, message)
        self.suggested_time = suggested_time

    def to_dict(self) -> dict[str, object]:
        body = super().to_dict()
        if self.suggested_time is not None:
            body["suggested_time"] = self.suggested_time
        return body


class BookingNotFound(BookingError):
    """Raised when a booking or patient cannot be located."""

    status_code = 404
    default_message = "Booking not found."


class StorageError(BookingError):
    """Raised when the storage round trip fails; details stay in the logs."""

    status_code = 500
    default_message = "Internal server error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__("server_error", message)


def record_exception(context: str, exc: BaseException) -> None:
    """Log the failure and append the traceback to data/logs/app_errors.log."""

    if not has_app_context():
        return
    current_app.logger.error("%s failed: %s", context, exc)
    try:
        root = Path(current_app.config["DATA_ROOT"]) / "logs"
        root.mkdir(parents=True, exist_ok=True)
        log_path = root / "app_errors.log"
        with log_path.open("a", encoding="utf-8") as handle:
            handle.write(f"[{datetime.now(UTC).isoformat()}] {context}\n")
            handle.write("".join(traceback.format_exception(exc)))
            handle.write("\n")
    except OSError as log_exc:
        current_app.logger.warning("Could not write error log: %s", log_exc)
