import pathlib
import sys

import pytest

root = pathlib.Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from clinic_booking import create_app
from clinic_booking.extensions import db
from clinic_booking.models import DoctorBooking, VaccineBooking
from clinic_booking.services import patients
from clinic_booking.services.ledger import BookingLedger


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("CLINIC_DATA_ROOT", str(tmp_path / "data"))
    monkeypatch.setenv("CLINIC_DB_PATH", str(tmp_path / "bookings.db"))
    monkeypatch.delenv("CLINIC_DATABASE_URL", raising=False)
    monkeypatch.setenv("CLINIC_SECRET_KEY", "test-secret")
    monkeypatch.setenv("CLINIC_RATELIMIT_ENABLED", "0")
    app = create_app()
    app.config.update(TESTING=True)
    yield app
    db.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["db"]


@pytest.fixture
def vaccine_ledger(store):
    return BookingLedger(store, VaccineBooking)


@pytest.fixture
def doctor_ledger(store):
    return BookingLedger(store, DoctorBooking)


@pytest.fixture
def make_patient(store):
    """Create a patient record and return its id."""

    def _make(email: str = "sara@example.com", full_name: str = "Sara Ali") -> int:
        return patients.add_patient(store, full_name=full_name, email=email, phone="01000000000")

    return _make


@pytest.fixture
def seed_vaccine(vaccine_ledger):
    """Insert vaccine rows straight into the ledger, bypassing every check."""

    def _seed(day: str, time: str, count: int = 1, **overrides) -> list[int]:
        ids = []
        for index in range(count):
            values = {
                "appointment_date": day,
                "appointment_time": time,
                "vaccine_name": f"Vaccine {index}",
                "patient_name": "Seed Patient",
                "patient_phone": "01000000000",
                "national_id": f"2900101{index:07d}",
                "gender": "female",
                "birth_date": "1990-01-01",
                "service": "clinic",
                "distance": 1.0,
                "location_detail": "Main branch",
                "created_at": "2099-01-01T08:00:00+00:00",
            }
            values.update(overrides)
            ids.append(vaccine_ledger.insert(values))
        return ids

    return _seed


@pytest.fixture
def seed_doctor(doctor_ledger):
    def _seed(patient_id: int, day: str, time: str, doctor_name: str = "Dr. Omar", **overrides) -> int:
        values = {
            "patient_id": patient_id,
            "doctor_name": doctor_name,
            "appointment_date": day,
            "appointment_time": time,
            "birth_date": "1990-01-01",
            "patient_name": "Seed Patient",
            "patient_phone": "01000000000",
            "patient_email": "seed@example.com",
            "patient_gender": "male",
            "created_at": "2099-01-01T08:00:00+00:00",
        }
        values.update(overrides)
        return doctor_ledger.insert(values)

    return _seed
