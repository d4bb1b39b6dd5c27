import pytest

from clinic_booking.extensions import SQLAlchemyEngine, timeout_options
from clinic_booking.models import Patient


def test_storage_client_registered(app, store):
    assert isinstance(store, SQLAlchemyEngine)
    assert app.extensions["db"] is store


def test_sqlite_pragmas_active(store):
    with store.engine.connect() as conn:
        mode = conn.exec_driver_sql("PRAGMA journal_mode").scalar()
        timeout = conn.exec_driver_sql("PRAGMA busy_timeout").scalar()
        foreign = conn.exec_driver_sql("PRAGMA foreign_keys").scalar()
    assert mode.lower() == "wal"
    assert timeout == 5000
    assert foreign == 1


def test_session_scope_rolls_back_on_error(store, make_patient):
    make_patient("keep@example.com")
    with pytest.raises(RuntimeError):
        with store.session_scope() as session:
            session.add(Patient(full_name="Dropped", email="dropped@example.com"))
            session.flush()
            raise RuntimeError("boom")

    with store.engine.connect() as conn:
        count = conn.exec_driver_sql("SELECT count(*) FROM patient").scalar()
    assert count == 1


def test_dispose_and_reopen(tmp_path):
    client = SQLAlchemyEngine()
    client.open(f"sqlite:///{tmp_path / 'scratch.db'}", timeout=2)
    with client.engine.connect() as conn:
        assert conn.exec_driver_sql("PRAGMA busy_timeout").scalar() == 2000
    client.dispose()
    with pytest.raises(RuntimeError):
        client.engine


def test_timeout_options_for_sqlite():
    options = timeout_options("sqlite:///bookings.db", 3.0, {})
    assert options == {"connect_args": {"check_same_thread": False, "timeout": 3.0}}


def test_timeout_options_for_server_backends():
    options = timeout_options("postgresql+psycopg2://clinic@db/bookings", 2.5, {"pool_size": 5})
    assert options["pool_size"] == 5
    assert options["pool_timeout"] == 2.5
    assert options["pool_pre_ping"] is True
    assert options["connect_args"] == {"connect_timeout": 2}

    options = timeout_options("mssql+pyodbc://clinic@db/bookings", 4, {})
    assert options["pool_timeout"] == 4
    assert "connect_args" not in options
