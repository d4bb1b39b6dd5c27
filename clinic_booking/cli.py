"""Flask CLI commands for table setup, stale purges and patient records."""

from __future__ import annotations

import click
from flask import current_app
from flask.cli import with_appcontext

from clinic_booking.extensions import db
from clinic_booking.services import patients
from clinic_booking.services.bootstrap import ensure_base_tables
from clinic_booking.services.doctor_bookings import DoctorBookingService
from clinic_booking.services.errors import StorageError
from clinic_booking.services.policy import booking_policy


def register_cli(app) -> None:
    @app.cli.command("init-db")
    @with_appcontext
    def init_db() -> None:
        ensure_base_tables(db.engine)
        click.echo(f"Tables ready at {current_app.config['SQLALCHEMY_DATABASE_URI']}")

    @app.cli.command("purge-stale")
    @with_appcontext
    def purge_stale() -> None:
        """Delete doctor bookings whose date and time have passed."""
        try:
            removed = DoctorBookingService(db, booking_policy()).purge_stale()
        except StorageError as exc:
            raise click.ClickException(exc.message) from exc
        click.echo(f"Removed {removed} stale doctor booking(s).")

    @app.cli.command("add-patient")
    @click.option("--full-name", required=True)
    @click.option("--email", required=True)
    @click.option("--phone", default=None)
    @click.option("--password", default=None)
    @with_appcontext
    def add_patient(full_name: str, email: str, phone: str | None, password: str | None) -> None:
        try:
            patient_id = patients.add_patient(
                db, full_name=full_name, email=email, phone=phone, password=password
            )
        except (ValueError, StorageError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Patient {patient_id} created.")
