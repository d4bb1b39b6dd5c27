from pathlib import Path

from clinic_booking.services.errors import StorageError
from clinic_booking.services.ledger import BookingLedger

DAY = "2099-03-10"
BASE = "/api/vaccines_booking"


def _payload(**overrides):
    payload = {
        "appointment_date": DAY,
        "appointment_time": "10:00",
        "birth_date": "1990-05-01",
        "patient_name": "Mona Adel",
        "patient_phone": "01001234567",
        "national_id": "29001011234567",
        "gender": "female",
        "vaccine_name": "Influenza",
        "service": "home visit",
        "distance": "4.5",
        "location_detail": "Building 5, Street 9",
    }
    payload.update(overrides)
    return payload


def test_create_and_list(client):
    resp = client.post(BASE, json=_payload())
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    booking = body["booking"]
    assert booking["id"] > 0
    assert booking["appointment_time"] == "10:00:00 AM"
    assert booking["distance"] == 4.5

    listed = client.get(BASE).get_json()
    assert [row["id"] for row in listed] == [booking["id"]]
    assert listed[0]["appointment_date"] == DAY


def test_twelve_hour_input_is_stored_canonically(client, vaccine_ledger):
    resp = client.post(BASE, json=_payload(appointment_time="1:45 pm"))
    assert resp.status_code == 201
    stored = vaccine_ledger.get(resp.get_json()["booking"]["id"])
    assert stored["appointment_time"] == "13:45:00"


def test_duplicate_slot_then_other_vaccine(client):
    assert client.post(BASE, json=_payload()).status_code == 201

    resp = client.post(BASE, json=_payload(national_id="29001019999999"))
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "duplicate_slot"

    assert client.post(BASE, json=_payload(vaccine_name="Hepatitis B")).status_code == 201


def test_missing_fields(client):
    payload = _payload()
    del payload["service"]
    payload["distance"] = ""
    resp = client.post(BASE, json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "missing_fields"
    assert body["fields"] == ["distance", "service"]


def test_non_english_text_rejected(client):
    resp = client.post(BASE, json=_payload(patient_name="منى عادل"))
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "non_english"
    assert body["fields"] == ["patient_name"]


def test_time_and_window_errors(client):
    cases = {
        "25:00": "invalid_time",
        "08:00": "out_of_hours",
        "14:31": "out_of_hours",
    }
    for raw_time, kind in cases.items():
        resp = client.post(BASE, json=_payload(appointment_time=raw_time))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == kind

    resp = client.post(BASE, json=_payload(appointment_date="2000-01-01"))
    assert resp.get_json()["error"] == "past"

    resp = client.post(BASE, json=_payload(distance="far"))
    assert resp.get_json()["error"] == "invalid_distance"


def test_capacity_suggestion_and_exhaustion(client, seed_vaccine):
    seed_vaccine(DAY, "14:00:00", count=5)
    resp = client.post(BASE, json=_payload(appointment_time="14:00"))
    assert resp.status_code == 409
    body = resp.get_json()
    assert body["error"] == "capacity"
    assert body["suggested_time"] == "14:15:00"

    seed_vaccine(DAY, "14:15:00", count=5)
    seed_vaccine(DAY, "14:30:00", count=5)
    body = client.post(BASE, json=_payload(appointment_time="14:00")).get_json()
    assert body["error"] == "capacity"
    assert "suggested_time" not in body


def test_body_must_be_json_object(client):
    resp = client.post(BASE, data="not json", content_type="text/plain")
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_body"

    resp = client.post(BASE, json=["a", "b"])
    assert resp.get_json()["error"] == "invalid_body"


def test_update_booking(client):
    booking_id = client.post(BASE, json=_payload()).get_json()["booking"]["id"]

    resp = client.patch(f"{BASE}/{booking_id}", json={"appointment_time": "11:30", "patient_phone": "0111"})
    assert resp.status_code == 200
    booking = resp.get_json()["booking"]
    assert booking["appointment_time"] == "11:30:00 AM"
    assert booking["patient_phone"] == "0111"

    # a booking does not conflict with itself
    resp = client.patch(f"{BASE}/{booking_id}", json={"appointment_time": "11:30:00", "distance": 7})
    assert resp.status_code == 200
    assert resp.get_json()["booking"]["distance"] == 7.0


def test_update_rechecks_slot_against_other_bookings(client):
    client.post(BASE, json=_payload(appointment_time="09:00"))
    other_id = client.post(BASE, json=_payload(appointment_time="10:00")).get_json()["booking"]["id"]

    resp = client.patch(f"{BASE}/{other_id}", json={"appointment_time": "9:00 AM"})
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "duplicate_slot"

    resp = client.patch(f"{BASE}/{other_id}", json={"appointment_time": "07:00"})
    assert resp.get_json()["error"] == "out_of_hours"


def test_update_errors(client):
    booking_id = client.post(BASE, json=_payload()).get_json()["booking"]["id"]

    resp = client.patch(f"{BASE}/{booking_id}", json={"id": 5})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "unknown_field"

    resp = client.patch(f"{BASE}/{booking_id}", json={})
    assert resp.get_json()["error"] == "no_fields"

    resp = client.patch(f"{BASE}/{booking_id}", json={"vaccine_name": "  "})
    assert resp.get_json()["error"] == "missing_fields"

    resp = client.patch(f"{BASE}/{booking_id}", json={"gender": "أنثى"})
    assert resp.get_json()["error"] == "non_english"

    resp = client.patch(f"{BASE}/999", json={"service": "clinic"})
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "booking_not_found"

    resp = client.patch(f"{BASE}/abc", json={"service": "clinic"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_id"


def test_delete_booking(client, vaccine_ledger):
    booking_id = client.post(BASE, json=_payload()).get_json()["booking"]["id"]

    resp = client.delete(f"{BASE}/{booking_id}")
    assert resp.status_code == 200
    assert vaccine_ledger.get(booking_id) is None
    assert client.get(BASE).get_json() == []

    resp = client.delete(f"{BASE}/{booking_id}")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "booking_not_found"

    assert client.delete(f"{BASE}/0").get_json()["error"] == "invalid_id"


def test_bookings_by_national_id(client):
    client.post(BASE, json=_payload(vaccine_name="Influenza"))
    client.post(BASE, json=_payload(vaccine_name="Measles"))
    client.post(BASE, json=_payload(national_id="29901010000000", vaccine_name="Polio"))

    rows = client.get(f"{BASE}/patient/29001011234567").get_json()
    assert sorted(row["vaccine_name"] for row in rows) == ["Influenza", "Measles"]
    assert client.get(f"{BASE}/patient/00000000000000").get_json() == []


def test_storage_failure_is_opaque_and_logged(app, client, monkeypatch):
    def _broken(self, **kwargs):
        raise StorageError("vaccines_booking.find_by: database is locked")

    monkeypatch.setattr(BookingLedger, "find_by", _broken)
    resp = client.get(BASE)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body == {"success": False, "error": "server_error", "message": "Internal server error."}

    log_path = Path(app.config["DATA_ROOT"]) / "logs" / "app_errors.log"
    assert "database is locked" in log_path.read_text(encoding="utf-8")


def test_non_finite_distance_is_an_input_error(client):
    for raw in ("nan", "inf", "-inf", "NaN"):
        resp = client.post(BASE, json=_payload(distance=raw))
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_distance"
    assert client.get(BASE).get_json() == []

    booking_id = client.post(BASE, json=_payload()).get_json()["booking"]["id"]
    resp = client.patch(f"{BASE}/{booking_id}", json={"distance": "nan"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_distance"


def test_out_of_range_booking_id_is_an_input_error(client):
    huge = "99999999999999999999"
    assert client.delete(f"{BASE}/{huge}").status_code == 400
    resp = client.patch(f"{BASE}/{huge}", json={"service": "clinic"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "invalid_id"
