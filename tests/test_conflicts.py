import pytest

from clinic_booking.services.conflicts import Candidate, doctor_detector, vaccine_detector
from clinic_booking.services.errors import BookingConflict

DAY = "2099-03-10"


def _conflict(detector, candidate):
    with pytest.raises(BookingConflict) as excinfo:
        detector.check(candidate)
    return excinfo.value


def test_vaccine_duplicate_slot(vaccine_ledger, seed_vaccine):
    (booking_id,) = seed_vaccine(DAY, "10:00:00", vaccine_name="Influenza")
    detector = vaccine_detector(vaccine_ledger)

    assert _conflict(detector, Candidate(DAY, "10:00:00", "Influenza")).kind == "duplicate_slot"
    detector.check(Candidate(DAY, "10:00:00", "Hepatitis B"))
    detector.check(Candidate(DAY, "10:00:00", "Influenza", exclude_id=booking_id))


def test_doctor_duplicate_slot_runs_first(doctor_ledger, seed_doctor, make_patient):
    patient = make_patient()
    seed_doctor(patient, DAY, "10:00:00", doctor_name="Dr. Omar")
    detector = doctor_detector(doctor_ledger, 15)

    conflict = _conflict(detector, Candidate(DAY, "10:00:00", "Dr. Omar", patient_id=patient))
    assert conflict.kind == "duplicate_slot"


def test_patient_provider_duplicate_on_any_day(doctor_ledger, seed_doctor, make_patient):
    patient = make_patient()
    seed_doctor(patient, DAY, "10:00:00", doctor_name="Dr. Omar")
    detector = doctor_detector(doctor_ledger, 15)

    conflict = _conflict(detector, Candidate("2099-03-11", "12:00:00", "Dr. Omar", patient_id=patient))
    assert conflict.kind == "patient_provider_duplicate"


def test_patient_time_clash_with_other_doctor(doctor_ledger, seed_doctor, make_patient):
    patient = make_patient()
    seed_doctor(patient, DAY, "10:00:00", doctor_name="Dr. Omar")
    detector = doctor_detector(doctor_ledger, 15)

    conflict = _conflict(detector, Candidate(DAY, "10:00:00", "Dr. Lina", patient_id=patient))
    assert conflict.kind == "patient_time_clash"


def test_provider_too_close_suggests_after_latest_clash(doctor_ledger, seed_doctor, make_patient):
    first = make_patient("first@example.com")
    second = make_patient("second@example.com")
    seed_doctor(first, DAY, "10:00:00", doctor_name="Dr. Omar")
    detector = doctor_detector(doctor_ledger, 15)

    conflict = _conflict(detector, Candidate(DAY, "10:10:00", "Dr. Omar", patient_id=second))
    assert conflict.kind == "provider_too_close"
    assert conflict.suggested_time == "10:15 AM"
    assert conflict.status_code == 409

    conflict = _conflict(detector, Candidate(DAY, "09:50:00", "Dr. Omar", patient_id=second))
    assert conflict.suggested_time == "10:15 AM"

    detector.check(Candidate(DAY, "10:20:00", "Dr. Omar", patient_id=second))
    # exactly the threshold apart is allowed
    detector.check(Candidate(DAY, "10:15:00", "Dr. Omar", patient_id=second))
    detector.check(Candidate("2099-03-11", "10:05:00", "Dr. Omar", patient_id=second))


def test_provider_too_close_ignores_booking_being_edited(doctor_ledger, seed_doctor, make_patient):
    patient = make_patient()
    booking_id = seed_doctor(patient, DAY, "10:00:00", doctor_name="Dr. Omar")
    detector = doctor_detector(doctor_ledger, 15)

    detector.check(Candidate(DAY, "10:05:00", "Dr. Omar", patient_id=patient, exclude_id=booking_id))
