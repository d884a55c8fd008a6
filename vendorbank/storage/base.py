"""Durability adapter contract shared by every storage medium."""

from __future__ import annotations

from abc import ABC, abstractmethod


class DurabilityAdapter(ABC):
    """Moves whole-database snapshots to and from a persistent medium.

    ``load`` returns ``None`` when nothing has been stored yet and raises
    :class:`~vendorbank.core.exceptions.AdapterIOError` for real I/O failures.
    ``save`` overwrites the stored snapshot and must not return until the
    write is done (or has failed).
    """

    name: str = "abstract"

    @abstractmethod
    async def load(self) -> bytes | None: ...

    @abstractmethod
    async def save(self, snapshot: bytes) -> None: ...

    async def aclose(self) -> None:
        """Release medium resources (HTTP clients, handles). Default: nothing."""
