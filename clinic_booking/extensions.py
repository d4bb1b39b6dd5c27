"""Application extensions (SQLAlchemy engine, limiter)."""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from flask import Flask
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker


def timeout_options(uri: str, timeout: float, engine_options: dict[str, Any]) -> dict[str, Any]:
    """Bound connect, lock and pool waits by ``timeout`` for the given backend."""

    options = dict(engine_options)
    connect_args = dict(options.pop("connect_args", {}))
    if uri.startswith("sqlite"):
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", timeout)
    else:
        options.setdefault("pool_timeout", timeout)
        options.setdefault("pool_pre_ping", True)
        if uri.startswith(("postgresql", "mysql", "mariadb")):
            # psycopg2, pymysql and mysqlclient take whole seconds
            connect_args.setdefault("connect_timeout", max(1, int(timeout)))
    if connect_args:
        options["connect_args"] = connect_args
    return options


class SQLAlchemyEngine:
    """Storage client shared by every booking ledger.

    Opened by ``init_app`` at process start and released with ``dispose``.
    """

    def __init__(self) -> None:
        self._engine: Engine | None = None
        self._session_factory: Callable[[], Any] | None = None

    def init_app(self, app: Flask) -> None:
        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        engine_options = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS", {}))
        self.open(uri, timeout=float(app.config.get("STORAGE_TIMEOUT_SECONDS", 5)), **engine_options)
        app.extensions["db"] = self

        @app.teardown_appcontext
        def remove_session(exception: BaseException | None) -> None:
            if self._session_factory:
                self._session_factory.remove()

    def open(self, uri: str, *, timeout: float = 5.0, **engine_options: Any) -> None:
        if self._engine is not None:
            self.dispose()
        is_sqlite = uri.startswith("sqlite")
        self._engine = create_engine(uri, future=True, **timeout_options(uri, timeout, engine_options))

        if is_sqlite:
            busy_ms = int(timeout * 1000)

            @event.listens_for(self._engine, "connect")
            def _set_pragmas(dbapi_connection, connection_record) -> None:  # type: ignore[override]
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute(f"PRAGMA busy_timeout={busy_ms}")
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        session_factory = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False, future=True)
        self._session_factory = scoped_session(session_factory)

    def dispose(self) -> None:
        if self._session_factory is not None:
            self._session_factory.remove()
            self._session_factory = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("SQLAlchemy engine is not initialised")
        return self._engine

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("SQLAlchemy session factory is not initialised")
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope for a single storage round trip."""

        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


db = SQLAlchemyEngine()
limiter = Limiter(get_remote_address, storage_uri=os.getenv("RATELIMIT_STORAGE_URI", "memory://"))


def init_extensions(app: Flask) -> None:
    db.init_app(app)
    limiter.init_app(app)
