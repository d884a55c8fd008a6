"""Repositories package — the process-wide vendor record repository.

Files:
  base.py    — SnapshotBackedRepository (lifecycle, ordered writes, persistence)
  vendor.py  — VendorRecordRepository (list_all / get / upsert / remove / rename)

One repository per process: ``build_repository`` is called once at startup
and the instance is shared through ``get_repository``.
"""

from fastapi import Request

from vendorbank.core.config import Settings
from vendorbank.repositories.base import RepositoryState, SnapshotBackedRepository
from vendorbank.repositories.vendor import VendorRecordRepository
from vendorbank.storage import build_adapter


def build_repository(settings: Settings) -> VendorRecordRepository:
    return VendorRecordRepository(
        build_adapter(settings),
        discard_corrupt_snapshot=settings.discard_corrupt_snapshot,
    )


def get_repository(request: Request) -> VendorRecordRepository:
    """FastAPI dependency returning the application's shared repository."""
    return request.app.state.repository


__all__ = [
    "RepositoryState",
    "SnapshotBackedRepository",
    "VendorRecordRepository",
    "build_repository",
    "get_repository",
]
