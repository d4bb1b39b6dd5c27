"""Bootstrap helper to ensure booking tables exist for first-time runs."""

from __future__ import annotations

from sqlalchemy.engine import Engine

from clinic_booking.models import Base


def ensure_base_tables(engine: Engine) -> None:
    Base.metadata.create_all(engine)
