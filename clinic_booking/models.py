"""SQLAlchemy models for patients and the two booking ledgers."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from werkzeug.security import check_password_hash, generate_password_hash


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    pass


class Patient(Base):
    __tablename__ = "patient"

    patient_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_iso)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)


class VaccineBooking(Base):
    __tablename__ = "vaccines_booking"
    # column naming the booked resource
    subject_column = "vaccine_name"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    appointment_date: Mapped[str] = mapped_column(String(10), nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(8), nullable=False)
    vaccine_name: Mapped[str] = mapped_column(Text, nullable=False)
    patient_name: Mapped[str] = mapped_column(Text, nullable=False)
    patient_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    national_id: Mapped[str] = mapped_column(String(50), nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    birth_date: Mapped[str] = mapped_column(String(10), nullable=False)
    service: Mapped[str] = mapped_column(Text, nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    location_detail: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_iso)

    __table_args__ = (
        Index("idx_vaccines_booking_slot", "appointment_date", "appointment_time"),
        Index("idx_vaccines_booking_national_id", "national_id"),
    )


class DoctorBooking(Base):
    __tablename__ = "doctors_booking"
    subject_column = "doctor_name"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("patient.patient_id", ondelete="CASCADE"), nullable=False
    )
    doctor_name: Mapped[str] = mapped_column(Text, nullable=False)
    appointment_date: Mapped[str] = mapped_column(String(10), nullable=False)
    appointment_time: Mapped[str] = mapped_column(String(8), nullable=False)
    birth_date: Mapped[str] = mapped_column(String(10), nullable=False)
    patient_name: Mapped[str] = mapped_column(Text, nullable=False)
    patient_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    patient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    patient_gender: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[str] = mapped_column(Text, nullable=False, default=_utcnow_iso)

    __table_args__ = (
        Index("idx_doctors_booking_slot", "appointment_date", "appointment_time"),
        Index("idx_doctors_booking_doctor_day", "doctor_name", "appointment_date"),
        Index("idx_doctors_booking_patient", "patient_id"),
    )
