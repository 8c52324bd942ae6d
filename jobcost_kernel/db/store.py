"""
Module: jobcost_kernel.db.store
Responsibility: The generic tabular data store every module persists through.
    Exposes row-level CRUD (select / insert / update / delete) keyed by table
    name, plus ``get`` and a ``transaction()`` boundary for multi-row writes.
Architecture position: Kernel > DB.  Built on SQLAlchemy Core statements over
    the ORM metadata declared in ``jobcost_modules.*.orm``.  Rows cross this
    boundary as plain dicts; modules parse them with ``from_row``.

Invariants enforced:
    - Every driver error is wrapped in ``StoreError`` (``raise ... from``) and
      propagated.  Nothing is retried and nothing is swallowed.
    - Outside ``transaction()``, each write commits on its own (when
      ``auto_commit`` is set).  Inside, writes commit together at the
      outermost exit or roll back together on any exception.  Nested
      ``transaction()`` blocks join the outer one.
    - No locking and no version checks: last write wins at the row level.

Failure modes:
    - ``RecordNotFoundError`` from update/delete when no row has the id.
    - ``StoreError`` for unknown tables/columns, constraint violations, and
      connection failures.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from typing import Any
from uuid import uuid4

from sqlalchemy import Column, Table, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jobcost_kernel.db.base import Base
from jobcost_kernel.exceptions import RecordNotFoundError, StoreError
from jobcost_kernel.logging_config import get_logger

logger = get_logger("db.store")

Row = dict[str, Any]

_COLLECTION_TYPES = (list, tuple, set, frozenset)


class DataStore:
    """
    Row-level CRUD over the application tables.

    Contract:
        ``select`` filters are equality matches; a ``None`` value matches
        NULL and a list/tuple/set matches any member.  ``order_by`` holds
        column names, ``-name`` for descending.

    Guarantees:
        - ``insert`` returns the stored row, including the generated id and
          server-side timestamps.
        - Returned rows are fresh dicts; mutating them never touches the
          store.

    Non-goals:
        - No caching; every call hits the database.
        - No optimistic concurrency or row locking.
    """

    def __init__(self, session: Session, auto_commit: bool = True):
        self._session = session
        self._auto_commit = auto_commit
        self._depth = 0

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    # =========================================================================
    # Reads
    # =========================================================================

    def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        order_by: Sequence[str] | None = None,
    ) -> list[Row]:
        """Return every row of ``table`` matching ``filters``."""
        tbl = self._table(table, "select")
        stmt = select(tbl)
        for name, value in (filters or {}).items():
            col = self._column(tbl, name, "select")
            if value is None:
                stmt = stmt.where(col.is_(None))
            elif isinstance(value, _COLLECTION_TYPES):
                stmt = stmt.where(col.in_(list(value)))
            else:
                stmt = stmt.where(col == value)
        for key in order_by or ():
            col = self._column(tbl, key.lstrip("-"), "select")
            stmt = stmt.order_by(col.desc() if key.startswith("-") else col.asc())

        try:
            result = self._session.execute(stmt)
            return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            raise StoreError("select", table, str(exc)) from exc

    def get(self, table: str, row_id: Any) -> Row | None:
        """Return the row with ``row_id`` or None."""
        rows = self.select(table, {"id": row_id})
        return rows[0] if rows else None

    # =========================================================================
    # Writes
    # =========================================================================

    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert ``row`` and return it as stored."""
        tbl = self._table(table, "insert")
        values = dict(row)
        if values.get("id") is None:
            values["id"] = uuid4()
        for name in values:
            self._column(tbl, name, "insert")

        self._execute("insert", table, insert(tbl).values(**values))
        logger.debug("store_row_inserted", extra={"table": table, "row_id": str(values["id"])})

        stored = self.get(table, values["id"])
        if stored is None:
            raise StoreError("insert", table, f"row {values['id']} not readable after insert")
        return stored

    def update(self, table: str, row_id: Any, values: Mapping[str, Any]) -> None:
        """Apply a partial update to one row."""
        tbl = self._table(table, "update")
        changes = {k: v for k, v in values.items() if k != "id"}
        for name in changes:
            self._column(tbl, name, "update")

        if not changes:
            if self.get(table, row_id) is None:
                raise RecordNotFoundError(table, row_id, "update")
            return

        stmt = update(tbl).where(tbl.c.id == row_id).values(**changes)
        result = self._execute("update", table, stmt)
        if result.rowcount == 0:
            raise RecordNotFoundError(table, row_id, "update")
        logger.debug("store_row_updated", extra={
            "table": table,
            "row_id": str(row_id),
            "fields": sorted(changes),
        })

    def delete(self, table: str, row_id: Any) -> None:
        """Delete one row."""
        tbl = self._table(table, "delete")
        result = self._execute("delete", table, delete(tbl).where(tbl.c.id == row_id))
        if result.rowcount == 0:
            raise RecordNotFoundError(table, row_id, "delete")
        logger.debug("store_row_deleted", extra={"table": table, "row_id": str(row_id)})

    # =========================================================================
    # Transactions
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator[DataStore]:
        """
        Group writes so they commit or roll back together.

        Usage:
            with store.transaction():
                entry = store.insert("time_entries", {...})
                store.insert("expenses", {...})
        """
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
                logger.warning("store_transaction_rolled_back")
            raise
        self._depth -= 1
        if self._depth == 0:
            self._commit()

    # =========================================================================
    # Internals
    # =========================================================================

    def _execute(self, operation: str, table: str, stmt: Any) -> Any:
        try:
            result = self._session.execute(stmt)
        except SQLAlchemyError as exc:
            if self._depth == 0:
                self._rollback()
            raise StoreError(operation, table, str(exc)) from exc
        if self._depth == 0:
            self._commit()
        return result

    def _commit(self) -> None:
        if not self._auto_commit:
            self._session.flush()
            return
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise StoreError("commit", "*", str(exc)) from exc

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    def _table(self, name: str, operation: str) -> Table:
        tables = Base.metadata.tables
        if name not in tables:
            from jobcost_kernel.db.engine import import_all_orm_models

            import_all_orm_models()
        tbl = tables.get(name)
        if tbl is None:
            raise StoreError(operation, name, "unknown table")
        return tbl

    def _column(self, tbl: Table, name: str, operation: str) -> Column:
        col = tbl.c.get(name)
        if col is None:
            raise StoreError(operation, tbl.name, f"unknown column {name}")
        return col
