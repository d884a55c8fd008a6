"""Vendor record repository — the only way surrounding code touches the table.

Records are keyed by vendor name (exact, case-sensitive). ``upsert``
overwrites every non-key column; it never changes a key. ``rename`` is the
one operation that does.
"""

from __future__ import annotations

from sqlalchemy import delete, insert, select, update

from vendorbank.core.exceptions import ConflictError, InvalidKeyError, NotFoundError
from vendorbank.db.engine import SnapshotEngine
from vendorbank.domain.vendor import (
    KEY_COLUMN,
    NON_KEY_COLUMNS,
    key_column,
    record_to_params,
    row_to_record,
    vendors,
)
from vendorbank.repositories.base import SnapshotBackedRepository
from vendorbank.schemas.vendor import VendorRecord


def _validate_key(key: str | None) -> str:
    if key is None or not key.strip():
        raise InvalidKeyError()
    return key


def _exists(engine: SnapshotEngine, key: str) -> bool:
    return bool(engine.query(select(key_column).where(key_column == key)))


class VendorRecordRepository(SnapshotBackedRepository):

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_all(self) -> list[VendorRecord]:
        """All records ordered by vendor name ascending."""
        engine = await self._ready()
        rows = engine.query(select(vendors).order_by(key_column.asc()))
        return [row_to_record(row._mapping) for row in rows]

    async def get(self, vendor_name: str) -> VendorRecord | None:
        engine = await self._ready()
        rows = engine.query(select(vendors).where(key_column == vendor_name))
        return row_to_record(rows[0]._mapping) if rows else None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def upsert(self, record: VendorRecord) -> bool:
        """Insert or wholesale-update by key. Returns True when a row was created."""
        key = _validate_key(record.vendor_name)
        params = record_to_params(record)

        def apply(engine: SnapshotEngine) -> bool:
            if _exists(engine, key):
                values = {name: params[name] for name in NON_KEY_COLUMNS}
                engine.execute(update(vendors).where(key_column == key).values(**values))
                return False
            engine.execute(insert(vendors).values(**params))
            return True

        return await self._mutate(apply)

    async def remove(self, vendor_name: str) -> None:
        """Delete by key. Deleting an absent key is not an error."""

        def apply(engine: SnapshotEngine) -> None:
            engine.execute(delete(vendors).where(key_column == vendor_name))

        await self._mutate(apply)

    async def rename(self, old_name: str, new_name: str) -> None:
        """Change a record's key, keeping every other field."""
        _validate_key(old_name)
        new_key = _validate_key(new_name)

        def apply(engine: SnapshotEngine) -> None:
            if not _exists(engine, old_name):
                raise NotFoundError("Vendor", old_name)
            if new_key == old_name:
                return
            if _exists(engine, new_key):
                raise ConflictError(f"Vendor '{new_key}' already exists")
            engine.execute(
                update(vendors).where(key_column == old_name).values({KEY_COLUMN: new_key})
            )

        await self._mutate(apply)
