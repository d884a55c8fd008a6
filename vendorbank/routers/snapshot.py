"""Snapshot file endpoints — server side of the remote-file storage strategy.

``POST /api/save-database`` accepts the snapshot as multipart field
``database`` and writes it to ``PUBLIC_DIR/SNAPSHOT_FILENAME``;
``GET /<SNAPSHOT_FILENAME>`` serves that file back. The file is opaque bytes
here: this layer never opens it as a database.
"""


import asyncio
import logging
import os
import tempfile
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from vendorbank.core.config import Settings

logger = logging.getLogger(__name__)


def _write_atomically(path: Path, contents: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(contents)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


async def _read_upload(file: UploadFile, config: Settings) -> bytes:
    contents = await file.read()

    if len(contents) == 0:
        raise HTTPException(status_code=400, detail="No database file provided")

    if len(contents) > config.max_upload_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Database file exceeds the {config.max_upload_size_mb}MB limit.",
        )

    return contents


def build_snapshot_router(config: Settings) -> APIRouter:
    """Routes bound to one configuration's public dir and snapshot file name."""
    router = APIRouter(tags=["Snapshot"])
    snapshot_path = Path(config.public_dir) / config.snapshot_filename

    # -----------------------------------------------------------------------
    # POST /api/save-database — overwrite the stored snapshot
    # -----------------------------------------------------------------------

    @router.post("/api/save-database")
    async def save_database(database: UploadFile = File(...)):
        contents = await _read_upload(database, config)
        try:
            await asyncio.to_thread(_write_atomically, snapshot_path, contents)
        except OSError as exc:
            logger.error("Error saving database to %s: %s", snapshot_path, exc)
            raise HTTPException(status_code=500, detail="Failed to save database file") from exc
        logger.info("Saved database snapshot (%d bytes) to %s", len(contents), snapshot_path)
        return {"success": True}

    # -----------------------------------------------------------------------
    # GET /<SNAPSHOT_FILENAME> — fetch the stored snapshot
    # -----------------------------------------------------------------------

    @router.get(config.snapshot_url_path)
    async def get_database():
        if not snapshot_path.is_file():
            raise HTTPException(status_code=404, detail="No database file saved yet")
        return FileResponse(snapshot_path, media_type="application/x-sqlite3")

    return router
