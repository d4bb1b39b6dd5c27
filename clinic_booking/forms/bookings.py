"""Booking request forms: required fields and the English-only text rule."""

from __future__ import annotations

from typing import Any, Mapping

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from clinic_booking.services.errors import BookingValidationError

REQUIRED = "required"
NON_ENGLISH = "english_only"

VACCINE_TEXT = r"^[A-Za-z0-9\s@.,-]+$"
DOCTOR_TEXT = r"^[\x00-\x7F]+$"


def _text(value: Any) -> Any:
    if value is None:
        return value
    return str(value).strip()


def _field(required: bool, *validators) -> StringField:
    first = DataRequired(message=REQUIRED) if required else Optional()
    return StringField(validators=[first, Length(max=255), *validators], filters=[_text])


def _english(pattern: str) -> Regexp:
    return Regexp(pattern, message=NON_ENGLISH)


class JsonForm(FlaskForm):
    """Form fed from the JSON request body; no CSRF for the JSON API."""

    class Meta:
        csrf = False

    def booking_error(self) -> BookingValidationError:
        missing = sorted(name for name, errors in self.errors.items() if REQUIRED in errors)
        if missing:
            return BookingValidationError("missing_fields", "All fields are required.", fields=missing)
        non_english = sorted(name for name, errors in self.errors.items() if NON_ENGLISH in errors)
        if non_english:
            return BookingValidationError(
                "non_english",
                "All fields must contain only English characters and numbers.",
                fields=non_english,
            )
        return BookingValidationError(
            "invalid_fields", "Some fields are invalid.", fields=sorted(self.errors)
        )

    def validated(self) -> dict[str, Any]:
        if not self.validate():
            raise self.booking_error()
        return dict(self.data)

    def validated_patch(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Return only the keys sent by the client, filtered through the form."""

        if not self.validate():
            raise self.booking_error()
        return {key: (self[key].data if key in self._fields else value) for key, value in payload.items()}


class VaccineBookingForm(JsonForm):
    appointment_date = _field(True)
    appointment_time = _field(True)
    birth_date = _field(True)
    patient_name = _field(True, _english(VACCINE_TEXT))
    patient_phone = _field(True, _english(VACCINE_TEXT))
    national_id = _field(True, _english(VACCINE_TEXT))
    gender = _field(True, _english(VACCINE_TEXT))
    vaccine_name = _field(True)
    service = _field(True)
    distance = _field(True)
    location_detail = _field(True)


class VaccineBookingPatchForm(JsonForm):
    appointment_date = _field(False)
    appointment_time = _field(False)
    birth_date = _field(False)
    patient_name = _field(False, _english(VACCINE_TEXT))
    patient_phone = _field(False, _english(VACCINE_TEXT))
    national_id = _field(False, _english(VACCINE_TEXT))
    gender = _field(False, _english(VACCINE_TEXT))
    vaccine_name = _field(False)
    service = _field(False)
    distance = _field(False)
    location_detail = _field(False)


class DoctorBookingForm(JsonForm):
    patient_email = _field(True, _english(DOCTOR_TEXT))
    doctor_name = _field(True)
    appointment_date = _field(True)
    appointment_time = _field(True)
    birth_date = _field(True)
    patient_name = _field(True, _english(DOCTOR_TEXT))
    patient_phone = _field(True, _english(DOCTOR_TEXT))
    patient_gender = _field(True, _english(DOCTOR_TEXT))


class DoctorBookingPatchForm(JsonForm):
    doctor_name = _field(False)
    appointment_date = _field(False)
    appointment_time = _field(False)
    birth_date = _field(False)
    patient_name = _field(False, _english(DOCTOR_TEXT))
    patient_phone = _field(False, _english(DOCTOR_TEXT))
    patient_gender = _field(False, _english(DOCTOR_TEXT))
