"""Storage status and manual flush (retry after a failed persist)."""

from fastapi import APIRouter, Depends

from vendorbank.core.response import DataResponse
from vendorbank.repositories import VendorRecordRepository, get_repository
from vendorbank.schemas.vendor import StorageStatus

router = APIRouter(prefix="/storage", tags=["Storage"])


def _status(repo: VendorRecordRepository) -> StorageStatus:
    return StorageStatus(backend=repo.backend, state=repo.state.value, dirty=repo.is_dirty)


@router.get("", response_model=DataResponse[StorageStatus])
async def storage_status(repo: VendorRecordRepository = Depends(get_repository)):
    return {"data": _status(repo)}


@router.post("/flush", response_model=DataResponse[StorageStatus])
async def flush_storage(repo: VendorRecordRepository = Depends(get_repository)):
    """Persist any unsaved in-memory changes now."""
    await repo.flush()
    return {"data": _status(repo)}


@router.post("/reset", response_model=DataResponse[StorageStatus])
async def reset_storage(repo: VendorRecordRepository = Depends(get_repository)):
    """Forget a failed initialization so the next request retries it."""
    await repo.reset()
    return {"data": _status(repo)}
