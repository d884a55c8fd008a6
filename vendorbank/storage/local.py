"""Local-store strategy: snapshot kept as text under one key of a key-value file.

The file is a JSON object mapping storage keys to text values. The snapshot
is written base64-encoded; values written as a JSON array of byte integers
(the older encoding) are still readable.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from vendorbank.core.exceptions import AdapterIOError, SnapshotCorruptError
from vendorbank.storage.base import DurabilityAdapter

logger = logging.getLogger(__name__)


class FileKeyValueStore:
    """Blocking key-value store backed by a single JSON document."""

    def __init__(self, path: str | os.PathLike[str]):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, Any]:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise SnapshotCorruptError(f"Key-value file {self._path} is not UTF-8 text: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise SnapshotCorruptError(f"Key-value file {self._path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SnapshotCorruptError(f"Key-value file {self._path} does not hold an object")
        return data

    def get(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._read_all()
        except SnapshotCorruptError:
            logger.warning("Overwriting unreadable key-value file %s", self._path)
            data = {}
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if data.pop(key, None) is not None:
            self._write_all(data)

    def _write_all(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


def encode_snapshot(snapshot: bytes) -> str:
    return base64.b64encode(snapshot).decode("ascii")


def decode_snapshot(value: Any) -> bytes:
    """Decode a stored value (base64 text or a legacy list of byte integers)."""
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise SnapshotCorruptError(f"Stored snapshot is not valid base64: {exc}") from exc
    if isinstance(value, list):
        try:
            return bytes(value)
        except (TypeError, ValueError) as exc:
            raise SnapshotCorruptError(f"Stored snapshot byte list is invalid: {exc}") from exc
    raise SnapshotCorruptError(f"Stored snapshot has unexpected type {type(value).__name__}")


class LocalStoreAdapter(DurabilityAdapter):
    name = "local"

    def __init__(self, store: FileKeyValueStore, key: str):
        self._store = store
        self._key = key

    async def load(self) -> bytes | None:
        try:
            value = await asyncio.to_thread(self._store.get, self._key)
        except OSError as exc:
            raise AdapterIOError(f"Could not read {self._store.path}: {exc}") from exc
        if value is None:
            return None
        snapshot = decode_snapshot(value)
        logger.debug("Loaded snapshot '%s' (%d bytes) from %s", self._key, len(snapshot), self._store.path)
        return snapshot

    async def save(self, snapshot: bytes) -> None:
        try:
            await asyncio.to_thread(self._store.set, self._key, encode_snapshot(snapshot))
        except OSError as exc:
            raise AdapterIOError(f"Could not write {self._store.path}: {exc}") from exc
        logger.debug("Saved snapshot '%s' (%d bytes) to %s", self._key, len(snapshot), self._store.path)
