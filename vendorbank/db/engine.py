"""Embedded SQLite engine held entirely in memory, snapshotted as bytes.

SQLite runs against ``:memory:`` through a single ``StaticPool`` connection,
so the whole database lives in that one connection. It has no durability of
its own: callers export the full image with :meth:`SnapshotEngine.export_snapshot`
after each write and hand it to a durability adapter.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping
from typing import Any

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import Executable

from vendorbank.core.exceptions import (
    EngineExecutionError,
    EngineLoadError,
    SnapshotCorruptError,
)
from vendorbank.domain.vendor import KEY_COLUMN, VENDOR_COLUMNS, metadata, vendors

logger = logging.getLogger(__name__)

_SQLITE_HEADER = b"SQLite format 3\x00"


def _check_image_size(data: bytes) -> None:
    """Reject images that are not a whole number of valid-sized pages."""
    if len(data) < 100:
        raise SnapshotCorruptError(f"Snapshot ({len(data)} bytes) is shorter than an SQLite header")
    page_size = int.from_bytes(data[16:18], "big")
    if page_size == 1:
        page_size = 65536
    if page_size < 512 or page_size & (page_size - 1):
        raise SnapshotCorruptError(f"Snapshot header declares invalid page size {page_size}")
    if len(data) % page_size:
        raise SnapshotCorruptError(
            f"Snapshot is truncated: {len(data)} bytes is not a multiple of page size {page_size}"
        )


def _statement(statement: Executable | str) -> Executable:
    return text(statement) if isinstance(statement, str) else statement


class SnapshotEngine:
    """Minimal relational surface over one in-memory SQLite database."""

    def __init__(self, engine: Engine):
        self._engine = engine

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def create(cls) -> SnapshotEngine:
        """Open an empty in-memory database.

        Raises :class:`EngineLoadError` when SQLite cannot be opened or the
        driver cannot serialize databases (needs Python 3.11+).
        """
        try:
            engine = create_engine(
                "sqlite://",
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
            with engine.connect() as conn:
                driver = conn.connection.driver_connection
                supported = hasattr(driver, "serialize") and hasattr(driver, "deserialize")
        except (ImportError, SQLAlchemyError, sqlite3.Error) as exc:
            raise EngineLoadError(f"Could not open the embedded SQLite engine: {exc}") from exc

        if not supported:
            engine.dispose()
            raise EngineLoadError(
                f"SQLite driver {sqlite3.sqlite_version} does not support "
                "serialize/deserialize; snapshots are impossible"
            )
        return cls(engine)

    @classmethod
    def load_from_snapshot(cls, data: bytes) -> SnapshotEngine:
        """Rebuild an engine from bytes produced by :meth:`export_snapshot`.

        Raises :class:`SnapshotCorruptError` when the bytes are not a usable
        SQLite image or hold a ``vendors`` table with a different column set
        or primary key.
        """
        if not data:
            raise SnapshotCorruptError("Snapshot is empty")
        if not data.startswith(_SQLITE_HEADER):
            raise SnapshotCorruptError(
                f"Snapshot ({len(data)} bytes) is not an SQLite database image"
            )
        _check_image_size(data)

        instance = cls.create()
        try:
            raw = instance._engine.raw_connection()
            try:
                raw.driver_connection.deserialize(data)
            finally:
                raw.close()
            instance._verify()
        except SnapshotCorruptError:
            instance.dispose()
            raise
        except (sqlite3.Error, SQLAlchemyError, ValueError) as exc:
            instance.dispose()
            raise SnapshotCorruptError(f"Snapshot could not be loaded: {exc}") from exc
        return instance

    def _verify(self) -> None:
        with self._engine.connect() as conn:
            problems = list(conn.exec_driver_sql("PRAGMA integrity_check").scalars())
            if problems != ["ok"]:
                raise SnapshotCorruptError(
                    "Snapshot failed integrity check: " + "; ".join(map(str, problems[:3]))
                )
            inspector = inspect(conn)
            if not inspector.has_table(vendors.name):
                return
            found = {col["name"] for col in inspector.get_columns(vendors.name)}
            if found != set(VENDOR_COLUMNS):
                raise SnapshotCorruptError(
                    f"Snapshot table '{vendors.name}' has columns {sorted(found)}, "
                    f"expected {sorted(VENDOR_COLUMNS)}"
                )
            primary_key = inspector.get_pk_constraint(vendors.name).get("constrained_columns") or []
            if list(primary_key) != [KEY_COLUMN]:
                raise SnapshotCorruptError(
                    f"Snapshot table '{vendors.name}' has primary key {list(primary_key)}, "
                    f"expected ['{KEY_COLUMN}']"
                )

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def ensure_schema(self) -> bool:
        """Create the vendors table if absent. Returns True when it was created."""
        with self._engine.begin() as conn:
            if inspect(conn).has_table(vendors.name):
                return False
            metadata.create_all(conn)
        logger.info("Created table '%s' (%d columns)", vendors.name, len(VENDOR_COLUMNS))
        return True

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def query(
        self, statement: Executable | str, params: Mapping[str, Any] | None = None
    ) -> list[Row]:
        try:
            with self._engine.connect() as conn:
                return list(conn.execute(_statement(statement), params))
        except SQLAlchemyError as exc:
            logger.error("Query failed: %s | params=%s | %s", statement, params, exc)
            raise EngineExecutionError(f"Query failed: {exc}") from exc

    def execute(
        self, statement: Executable | str, params: Mapping[str, Any] | None = None
    ) -> int:
        """Run a write in its own transaction and return the affected row count."""
        try:
            with self._engine.begin() as conn:
                return conn.execute(_statement(statement), params).rowcount
        except SQLAlchemyError as exc:
            logger.error("Statement failed: %s | params=%s | %s", statement, params, exc)
            raise EngineExecutionError(f"Statement failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def export_snapshot(self) -> bytes:
        try:
            with self._engine.connect() as conn:
                return conn.connection.driver_connection.serialize()
        except (sqlite3.Error, SQLAlchemyError) as exc:
            raise EngineExecutionError(f"Snapshot export failed: {exc}") from exc

    def dispose(self) -> None:
        self._engine.dispose()
