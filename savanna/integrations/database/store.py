"""``TableStore`` over the application's own SQLAlchemy tables."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional, Sequence

from sqlalchemy import DateTime, Table, select, text
from sqlalchemy.exc import CompileError, IntegrityError, SQLAlchemyError

from savanna.core.auth.backend import StoreError, StoreErrorKind, StoreResult
from savanna.extensions import db

logger = logging.getLogger(__name__)


def classify_exception(exc: SQLAlchemyError) -> StoreError:
    """Map driver errors from SQLite and PostgreSQL onto store error kinds."""
    message = str(getattr(exc, "orig", None) or exc)
    lowered = message.lower()
    if isinstance(exc, IntegrityError) and ("unique" in lowered or "duplicate key" in lowered):
        return StoreError(StoreErrorKind.DUPLICATE_KEY, message)
    if isinstance(exc, CompileError) and "unconsumed column" in lowered:
        return StoreError(StoreErrorKind.UNKNOWN_COLUMN, message)
    if "no such column" in lowered or "has no column" in lowered or ("column" in lowered and "does not exist" in lowered):
        return StoreError(StoreErrorKind.UNKNOWN_COLUMN, message)
    if "no such table" in lowered or ("relation" in lowered and "does not exist" in lowered):
        return StoreError(StoreErrorKind.TABLE_MISSING, message)
    if "permission denied" in lowered:
        return StoreError(StoreErrorKind.ACCESS_DENIED, message)
    if "statement timeout" in lowered or "database is locked" in lowered:
        return StoreError(StoreErrorKind.TIMEOUT, message)
    return StoreError(StoreErrorKind.OTHER, message)


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row_dict(row: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: _jsonable(value) for key, value in row.items()}


def _bind_values(table: Table, values: Mapping[str, Any]) -> Dict[str, Any]:
    """ISO-8601 strings become naive UTC datetimes for DateTime columns."""
    bound = dict(values)
    for key, value in bound.items():
        column = table.c.get(key)
        if column is not None and isinstance(column.type, DateTime) and isinstance(value, str):
            parsed = datetime.fromisoformat(value)
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            bound[key] = parsed
    return bound


class SqlTableStore:
    def __init__(self, session=None, metadata=None):
        self._session = session
        self._metadata = metadata

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @property
    def metadata(self):
        return self._metadata if self._metadata is not None else db.metadata

    def _table(self, name: str) -> Optional[Table]:
        return self.metadata.tables.get(name)

    def select_one(
        self,
        table: str,
        filters: Mapping[str, Any],
        embed: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> StoreResult:
        target = self._table(table)
        if target is None:
            return StoreResult.failure(StoreErrorKind.TABLE_MISSING, f"table {table!r} does not exist")
        try:
            clauses = [target.c[column] == value for column, value in filters.items()]
        except KeyError as exc:
            return StoreResult.failure(StoreErrorKind.UNKNOWN_COLUMN, f"unknown column {exc}")

        try:
            self._apply_timeout(timeout)
            rows = self.session.execute(select(target).where(*clauses).limit(2)).mappings().all()
        except SQLAlchemyError as exc:
            self.session.rollback()
            return StoreResult(error=classify_exception(exc))

        if not rows:
            return StoreResult.failure(StoreErrorKind.NO_ROWS, "no rows returned", code="PGRST116")
        if len(rows) > 1:
            return StoreResult.failure(StoreErrorKind.OTHER, "multiple rows returned")

        row = _row_dict(rows[0])
        for key, related_name in (embed or {}).items():
            row[key] = self._embedded(related_name, row.get(f"{key}_id"))
        return StoreResult.success(row)

    def insert(self, table: str, rows: Sequence[Mapping[str, Any]], timeout: Optional[float] = None) -> StoreResult:
        target = self._table(table)
        if target is None:
            return StoreResult.failure(StoreErrorKind.TABLE_MISSING, f"table {table!r} does not exist")

        stored = []
        try:
            self._apply_timeout(timeout)
            for row in rows:
                result = self.session.execute(target.insert().values(**_bind_values(target, row)).returning(*target.c))
                stored.append(_row_dict(result.mappings().one()))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            error = classify_exception(exc)
            logger.debug("Insert into %s failed: %s", table, error.kind.value)
            return StoreResult(error=error)
        return StoreResult.success(stored)

    def delete(self, table: str, filters: Mapping[str, Any], timeout: Optional[float] = None) -> StoreResult:
        target = self._table(table)
        if target is None:
            return StoreResult.failure(StoreErrorKind.TABLE_MISSING, f"table {table!r} does not exist")
        try:
            clauses = [target.c[column] == value for column, value in filters.items()]
        except KeyError as exc:
            return StoreResult.failure(StoreErrorKind.UNKNOWN_COLUMN, f"unknown column {exc}")
        try:
            self._apply_timeout(timeout)
            result = self.session.execute(target.delete().where(*clauses))
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            return StoreResult(error=classify_exception(exc))
        return StoreResult.success(result.rowcount)

    def update(
        self,
        table: str,
        values: Mapping[str, Any],
        filters: Mapping[str, Any],
        timeout: Optional[float] = None,
    ) -> StoreResult:
        target = self._table(table)
        if target is None:
            return StoreResult.failure(StoreErrorKind.TABLE_MISSING, f"table {table!r} does not exist")
        try:
            clauses = [target.c[column] == value for column, value in filters.items()]
        except KeyError as exc:
            return StoreResult.failure(StoreErrorKind.UNKNOWN_COLUMN, f"unknown column {exc}")
        try:
            statement = target.update().where(*clauses).values(**_bind_values(target, values))
        except ValueError as exc:
            return StoreResult.failure(StoreErrorKind.OTHER, str(exc))
        try:
            self._apply_timeout(timeout)
            result = self.session.execute(statement)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            return StoreResult(error=classify_exception(exc))
        return StoreResult.success(result.rowcount)

    def _embedded(self, related_name: str, related_id: Any) -> Optional[Dict[str, Any]]:
        related = self._table(related_name)
        if related is None or related_id is None or "id" not in related.c:
            return None
        try:
            row = self.session.execute(select(related).where(related.c.id == related_id)).mappings().first()
        except SQLAlchemyError:
            self.session.rollback()
            logger.warning("Could not load embedded %s row", related_name, exc_info=True)
            return None
        return _row_dict(row) if row is not None else None

    def _apply_timeout(self, timeout: Optional[float]) -> None:
        # Only PostgreSQL supports a per-transaction statement timeout; SQLite's busy timeout is capped
        # at the same bound in config.
        if not timeout or self.session.get_bind().dialect.name != "postgresql":
            return
        self.session.execute(text(f"SET LOCAL statement_timeout = {int(timeout * 1000)}"))


__all__ = ["SqlTableStore", "classify_exception"]
