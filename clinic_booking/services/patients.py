"""Patient helpers shared across routes and CLI commands."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from clinic_booking.extensions import SQLAlchemyEngine
from clinic_booking.models import Patient
from clinic_booking.services.errors import StorageError


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def find_by_email(store: SQLAlchemyEngine, email: str) -> dict[str, Any] | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    try:
        with store.session_scope() as session:
            patient = session.execute(select(Patient).where(Patient.email == normalized)).scalar_one_or_none()
            if patient is None:
                return None
            return {
                "patient_id": patient.patient_id,
                "full_name": patient.full_name,
                "email": patient.email,
                "phone": patient.phone,
            }
    except SQLAlchemyError as exc:
        raise StorageError(f"patient.find_by_email: {exc}") from exc


def add_patient(
    store: SQLAlchemyEngine,
    *,
    full_name: str,
    email: str,
    phone: str | None = None,
    password: str | None = None,
) -> int:
    """Create a patient record; raises ``ValueError`` when the email is taken."""

    full_name = (full_name or "").strip()
    normalized = normalize_email(email)
    if not full_name or not normalized:
        raise ValueError("full_name and email are required")
    patient = Patient(full_name=full_name, email=normalized, phone=(phone or "").strip() or None)
    if password:
        patient.set_password(password)
    try:
        with store.session_scope() as session:
            session.add(patient)
            session.flush()
            return patient.patient_id
    except IntegrityError as exc:
        raise ValueError(f"patient with email {normalized} already exists") from exc
    except SQLAlchemyError as exc:
        raise StorageError(f"patient.add: {exc}") from exc
