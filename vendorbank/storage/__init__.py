"""Storage package — durability adapters for whole-database snapshots.

Files:
  base.py    — DurabilityAdapter contract (load / save / aclose)
  local.py   — key-value file strategy (base64 text under one fixed key)
  remote.py  — upload-endpoint strategy (POST multipart, GET static file)
"""

import httpx

from vendorbank.core.config import Settings
from vendorbank.storage.base import DurabilityAdapter
from vendorbank.storage.local import FileKeyValueStore, LocalStoreAdapter
from vendorbank.storage.remote import RemoteFileAdapter


def build_adapter(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> DurabilityAdapter:
    """Build the adapter selected by ``STORAGE_BACKEND``."""
    if settings.storage_backend == "remote":
        client = httpx.AsyncClient(
            base_url=settings.remote_base_url,
            timeout=settings.remote_timeout,
            transport=transport,
        )
        return RemoteFileAdapter(
            client,
            upload_path=settings.remote_upload_path,
            snapshot_path=settings.remote_snapshot_path or settings.snapshot_url_path,
            filename=settings.snapshot_filename,
        )
    return LocalStoreAdapter(FileKeyValueStore(settings.local_store_path), settings.storage_key)


__all__ = [
    "DurabilityAdapter",
    "FileKeyValueStore",
    "LocalStoreAdapter",
    "RemoteFileAdapter",
    "build_adapter",
]
