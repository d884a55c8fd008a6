"""Snapshot-backed repository: lazy engine lifecycle, ordered writes, persistence.

Lifecycle::

    uninitialized -> initializing -> ready
                                  -> failed   (terminal until reset())

Initialization runs once as a shared task; every caller that arrives while it
is in flight awaits the same task. A failure is kept: every later call
raises a new :class:`RepositoryUnavailableError` carrying the same cause.

Writes are serialized through one FIFO lock taken before any other await, so
two mutations issued back to back are applied and persisted in call order.
Each mutation persists the full snapshot before it returns. If persisting
fails the error propagates, the in-memory change stays, and the repository
is marked dirty until the next successful persist (next mutation or
:meth:`flush`). Reads in between see the unpersisted change.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import TypeVar

from vendorbank.core.exceptions import (
    AppException,
    RepositoryUnavailableError,
    SnapshotCorruptError,
)
from vendorbank.db.engine import SnapshotEngine
from vendorbank.storage.base import DurabilityAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RepositoryState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class SnapshotBackedRepository:
    """Owns the single engine + adapter pair. All table access goes through here."""

    def __init__(
        self,
        adapter: DurabilityAdapter,
        *,
        engine_factory: type[SnapshotEngine] = SnapshotEngine,
        discard_corrupt_snapshot: bool = True,
    ):
        self._adapter = adapter
        self._engine_factory = engine_factory
        self._discard_corrupt_snapshot = discard_corrupt_snapshot

        self._state = RepositoryState.UNINITIALIZED
        self._init_task: asyncio.Task[SnapshotEngine] | None = None
        self._engine: SnapshotEngine | None = None
        self._failure: AppException | None = None
        self._write_lock = asyncio.Lock()
        self._dirty = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> RepositoryState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        """True when the in-memory table holds changes not yet persisted."""
        return self._dirty

    @property
    def backend(self) -> str:
        return self._adapter.name

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def _ready(self) -> SnapshotEngine:
        if self._state is RepositoryState.READY and self._engine is not None:
            return self._engine
        if self._state is RepositoryState.FAILED and self._failure is not None:
            raise RepositoryUnavailableError(self._failure) from self._failure
        if self._init_task is None:
            self._state = RepositoryState.INITIALIZING
            self._init_task = asyncio.ensure_future(self._initialize())
        # One caller being cancelled must not cancel the shared initialization.
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> SnapshotEngine:
        logger.info("Initializing vendor data bank (storage: %s)", self._adapter.name)
        try:
            engine = await self._open_engine()
        except AppException as exc:
            self._fail(exc)
            raise RepositoryUnavailableError(exc) from exc
        except Exception as exc:
            logger.exception("Unexpected error while initializing the vendor data bank")
            cause = AppException(f"Unexpected initialization error: {exc}")
            self._fail(cause)
            raise RepositoryUnavailableError(cause) from exc

        self._engine = engine
        self._state = RepositoryState.READY
        logger.info("Vendor data bank ready")
        return engine

    async def _open_engine(self) -> SnapshotEngine:
        snapshot = await self._load_snapshot()
        if snapshot is None:
            engine = self._engine_factory.create()
        else:
            try:
                engine = self._engine_factory.load_from_snapshot(snapshot)
                logger.info("Restored snapshot (%d bytes)", len(snapshot))
            except SnapshotCorruptError as exc:
                if not self._discard_corrupt_snapshot:
                    raise
                logger.error(
                    "DISCARDING corrupt snapshot (%d bytes) and starting from an empty table: %s",
                    len(snapshot), exc.message,
                )
                engine = self._engine_factory.create()

        if engine.ensure_schema():
            # Nothing durable matches this table yet; the next write persists it.
            self._dirty = True
        return engine

    async def _load_snapshot(self) -> bytes | None:
        try:
            snapshot = await self._adapter.load()
        except SnapshotCorruptError as exc:
            if not self._discard_corrupt_snapshot:
                raise
            logger.error("DISCARDING unreadable stored snapshot: %s", exc.message)
            return None
        if snapshot is None:
            logger.info("No stored snapshot; starting with an empty table")
        return snapshot

    def _fail(self, cause: AppException) -> None:
        logger.error("Vendor data bank failed to initialize: [%s] %s", cause.code, cause.message)
        self._failure = cause
        self._state = RepositoryState.FAILED

    # ------------------------------------------------------------------
    # Writes + persistence
    # ------------------------------------------------------------------

    async def _mutate(self, apply: Callable[[SnapshotEngine], T]) -> T:
        """Apply one in-memory change and persist the full snapshot, in call order."""
        async with self._write_lock:
            engine = await self._ready()
            result = apply(engine)
            self._dirty = True
            await self._persist(engine)
            return result

    async def _persist(self, engine: SnapshotEngine) -> None:
        snapshot = engine.export_snapshot()
        try:
            await self._adapter.save(snapshot)
        except AppException as exc:
            logger.error(
                "Snapshot persist failed (%d bytes); in-memory changes are kept until the next "
                "successful persist: %s", len(snapshot), exc.message,
            )
            raise
        self._dirty = False

    async def flush(self) -> bool:
        """Persist pending changes. Returns True when a snapshot was written."""
        async with self._write_lock:
            engine = await self._ready()
            if not self._dirty:
                return False
            await self._persist(engine)
            return True

    # ------------------------------------------------------------------
    # Recovery / shutdown
    # ------------------------------------------------------------------

    async def reset(self) -> None:
        """Drop the engine and any memoized failure; the next call re-initializes."""
        async with self._write_lock:
            await self._settle_init()
            if self._dirty and self._state is RepositoryState.READY:
                logger.warning("Resetting with unpersisted changes; they will be lost")
            self._drop_engine()

    async def close(self) -> None:
        async with self._write_lock:
            await self._settle_init()
            self._drop_engine()
            await self._adapter.aclose()

    async def _settle_init(self) -> None:
        task = self._init_task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _drop_engine(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._init_task = None
        self._failure = None
        self._dirty = False
        self._state = RepositoryState.UNINITIALIZED
