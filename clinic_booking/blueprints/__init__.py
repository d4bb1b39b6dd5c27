"""Blueprint registration."""

from __future__ import annotations

from flask import Flask


def register_blueprints(app: Flask) -> None:
    from clinic_booking.blueprints.core.core import bp as core_bp
    from clinic_booking.blueprints.doctor_bookings.routes import bp as doctor_bookings_bp
    from clinic_booking.blueprints.vaccine_bookings.routes import bp as vaccine_bookings_bp

    app.register_blueprint(core_bp)
    app.register_blueprint(vaccine_bookings_bp)
    app.register_blueprint(doctor_bookings_bp)
