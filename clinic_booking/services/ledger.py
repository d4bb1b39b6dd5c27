"""Persisted booking collections accessed through parameterized statements.

Every public method is one storage round trip in its own session scope.
Checks and writes are separate round trips with no transaction spanning
them, so two concurrent requests for the same slot can both pass the
conflict and capacity checks. Closing that gap needs serializable
allocate-and-commit or a storage-level unique constraint with retry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from clinic_booking.extensions import SQLAlchemyEngine
from clinic_booking.models import Base
from clinic_booking.services.errors import BookingValidationError, StorageError


@dataclass(frozen=True)
class BookingPatch:
    """Explicitly present fields of a partial booking update."""

    values: Mapping[str, Any]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], allowed: Iterable[str]) -> "BookingPatch":
        allowed_set = set(allowed)
        unknown = sorted(key for key in payload if key not in allowed_set)
        if unknown:
            raise BookingValidationError(
                "unknown_field",
                "These fields cannot be updated: " + ", ".join(unknown),
                fields=unknown,
            )
        if not payload:
            raise BookingValidationError("no_fields", "No valid fields provided for update.")
        return cls(MappingProxyType(dict(payload)))

    def has(self, name: str) -> bool:
        return name in self.values

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def replace(self, **changes: Any) -> "BookingPatch":
        merged = dict(self.values)
        merged.update(changes)
        return BookingPatch(MappingProxyType(merged))

    def ordered_items(self) -> list[tuple[str, Any]]:
        return sorted(self.values.items())


def _row_dict(row: Base) -> dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in sa.inspect(row).mapper.column_attrs}


class BookingLedger:
    """Query, insert, update and delete bookings of one model."""

    def __init__(self, store: SQLAlchemyEngine, model: type[Base]) -> None:
        self._store = store
        self.model = model
        self._subject = getattr(model, model.subject_column)

    def _run(self, action: str, fn):
        try:
            with self._store.session_scope() as session:
                return fn(session)
        except SQLAlchemyError as exc:
            raise StorageError(f"{self.model.__tablename__}.{action}: {exc}") from exc

    def _criteria(self, criteria: Mapping[str, Any], exclude_id: int | None) -> list[Any]:
        clauses = [getattr(self.model, key) == value for key, value in sorted(criteria.items())]
        if exclude_id is not None:
            clauses.append(self.model.id != exclude_id)
        return clauses

    def insert(self, values: Mapping[str, Any]) -> int:
        def _insert(session):
            row = self.model(**values)
            session.add(row)
            session.flush()
            return row.id

        return self._run("insert", _insert)

    def get(self, booking_id: int) -> dict[str, Any] | None:
        def _get(session):
            row = session.get(self.model, booking_id)
            return _row_dict(row) if row is not None else None

        return self._run("get", _get)

    def find_by(self, *, order_by: Iterable[str] = ("appointment_date", "appointment_time"),
                descending: bool = False, **criteria: Any) -> list[dict[str, Any]]:
        def _find(session):
            columns = [getattr(self.model, name) for name in order_by]
            if descending:
                columns = [column.desc() for column in columns]
            stmt = sa.select(self.model).where(*self._criteria(criteria, None)).order_by(*columns, self.model.id)
            return [_row_dict(row) for row in session.execute(stmt).scalars()]

        return self._run("find_by", _find)

    def exists(self, *, exclude_id: int | None = None, **criteria: Any) -> bool:
        def _exists(session):
            stmt = sa.select(self.model.id).where(*self._criteria(criteria, exclude_id)).limit(1)
            return session.execute(stmt).first() is not None

        return self._run("exists", _exists)

    def count_in_hour(self, day: str, hour: int, *, exclude_id: int | None = None) -> int:
        """Count bookings on ``day`` whose time falls in ``hour``."""

        def _count(session):
            stmt = sa.select(sa.func.count()).select_from(self.model).where(
                *self._criteria({"appointment_date": day}, exclude_id),
                sa.func.substr(self.model.appointment_time, 1, 2) == f"{hour:02d}",
            )
            return int(session.execute(stmt).scalar_one())

        return self._run("count_in_hour", _count)

    def count_at(self, day: str, time_value: str, *, exclude_id: int | None = None) -> int:
        """Count bookings at exactly ``day`` + ``time_value``."""

        def _count(session):
            stmt = sa.select(sa.func.count()).select_from(self.model).where(
                *self._criteria({"appointment_date": day, "appointment_time": time_value}, exclude_id)
            )
            return int(session.execute(stmt).scalar_one())

        return self._run("count_at", _count)

    def times_for_subject(self, day: str, subject: str, *, exclude_id: int | None = None) -> list[str]:
        def _times(session):
            stmt = (
                sa.select(self.model.appointment_time)
                .where(*self._criteria({"appointment_date": day}, exclude_id), self._subject == subject)
                .order_by(self.model.appointment_time)
            )
            return list(session.execute(stmt).scalars())

        return self._run("times_for_subject", _times)

    def update(self, booking_id: int, patch: BookingPatch) -> bool:
        def _update(session):
            stmt = (
                sa.update(self.model)
                .where(self.model.id == booking_id)
                .values({getattr(self.model, key): value for key, value in patch.ordered_items()})
            )
            return session.execute(stmt).rowcount > 0

        return self._run("update", _update)

    def delete_by(self, **criteria: Any) -> int:
        if not criteria:
            raise ValueError("delete_by needs at least one criterion")

        def _delete(session):
            stmt = sa.delete(self.model).where(*self._criteria(criteria, None))
            return session.execute(stmt).rowcount

        return self._run("delete_by", _delete)

    def purge_stale(self, now: datetime) -> int:
        """Delete bookings dated before ``now`` (date, then time on the same day)."""

        today = now.date().isoformat()
        current_time = now.strftime("%H:%M:%S")

        def _purge(session):
            stmt = sa.delete(self.model).where(
                sa.or_(
                    self.model.appointment_date < today,
                    sa.and_(
                        self.model.appointment_date == today,
                        self.model.appointment_time < current_time,
                    ),
                )
            )
            return session.execute(stmt).rowcount

        return self._run("purge_stale", _purge)
