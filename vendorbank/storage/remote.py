"""Remote-file strategy: snapshot uploaded to a server that writes it to a file.

``save`` posts the bytes as multipart field ``database``; ``load`` fetches the
static file path. A 404 on load means the file has never been written.
"""

from __future__ import annotations

import logging

import httpx

from vendorbank.core.exceptions import AdapterIOError
from vendorbank.storage.base import DurabilityAdapter

logger = logging.getLogger(__name__)

UPLOAD_FIELD = "database"


class RemoteFileAdapter(DurabilityAdapter):
    name = "remote"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        upload_path: str = "/api/save-database",
        snapshot_path: str = "/vendors.db",
        filename: str = "vendors.db",
    ):
        self._client = client
        self._upload_path = upload_path
        self._snapshot_path = snapshot_path
        self._filename = filename

    async def load(self) -> bytes | None:
        try:
            response = await self._client.get(self._snapshot_path)
        except httpx.HTTPError as exc:
            raise AdapterIOError(f"Could not fetch {self._snapshot_path}: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            logger.info("No snapshot at %s yet", self._snapshot_path)
            return None
        if response.is_error:
            raise AdapterIOError(
                f"Fetching {self._snapshot_path} failed with HTTP {response.status_code}"
            )
        return response.content

    async def save(self, snapshot: bytes) -> None:
        files = {UPLOAD_FIELD: (self._filename, snapshot, "application/x-sqlite3")}
        try:
            response = await self._client.post(self._upload_path, files=files)
        except httpx.HTTPError as exc:
            raise AdapterIOError(f"Could not upload snapshot to {self._upload_path}: {exc}") from exc

        if response.is_error:
            raise AdapterIOError(
                f"Snapshot upload to {self._upload_path} failed with HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )
        logger.debug("Uploaded snapshot (%d bytes) to %s", len(snapshot), self._upload_path)

    async def aclose(self) -> None:
        await self._client.aclose()
