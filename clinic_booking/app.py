"""WSGI entry for the booking API (``gunicorn clinic_booking.app:app``)."""

from __future__ import annotations

from clinic_booking import APP_HOST, APP_PORT, create_app

app = create_app()

if __name__ == "__main__":
    app.logger.info("Booking API listening on http://%s:%s", APP_HOST, APP_PORT)
    app.run(host=APP_HOST, port=APP_PORT)
