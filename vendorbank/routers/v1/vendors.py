"""Vendor record router — form submit, search view and delete action.

Pattern:
  1. Declare a router with prefix and tags
  2. Inject the shared repository via Depends
  3. Instantiate the service with the repository
  4. Call service methods and wrap result in response envelope
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from vendorbank.core.pagination import PaginationParams
from vendorbank.core.response import DataResponse, ListResponse, paginated
from vendorbank.repositories import VendorRecordRepository, get_repository
from vendorbank.schemas.vendor import VendorRecord, VendorRenameRequest, VendorSaveResult
from vendorbank.services.vendor import VendorService

router = APIRouter(prefix="/vendors", tags=["Vendors"])


def _svc(repo: VendorRecordRepository = Depends(get_repository)) -> VendorService:
    return VendorService(repo)


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.get("", response_model=ListResponse[VendorRecord])
async def list_vendors(
    search: Optional[str] = Query(default=None, description="Case-insensitive vendor name filter"),
    pagination: PaginationParams = Depends(),
    svc: VendorService = Depends(_svc),
):
    """List saved vendor evaluations ordered by vendor name."""
    items = await svc.list_vendors(search)
    return paginated(items, pagination)


@router.post("", response_model=DataResponse[VendorSaveResult])
async def save_vendor(
    body: VendorRecord,
    response: Response,
    svc: VendorService = Depends(_svc),
):
    """Add a vendor evaluation, or overwrite the one with the same vendor name."""
    record, created = await svc.save_vendor(body)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return {"data": VendorSaveResult(record=record, created=created)}


@router.get("/{vendor_name}", response_model=DataResponse[VendorRecord])
async def get_vendor(vendor_name: str, svc: VendorService = Depends(_svc)):
    return {"data": await svc.get_vendor(vendor_name)}


@router.put("/{vendor_name}", response_model=DataResponse[VendorRecord])
async def update_vendor(
    vendor_name: str,
    body: VendorRecord,
    svc: VendorService = Depends(_svc),
):
    return {"data": await svc.update_vendor(vendor_name, body)}


@router.post("/{vendor_name}/rename", response_model=DataResponse[VendorRecord])
async def rename_vendor(
    vendor_name: str,
    body: VendorRenameRequest,
    svc: VendorService = Depends(_svc),
):
    return {"data": await svc.rename_vendor(vendor_name, body.new_vendor_name)}


@router.delete("/{vendor_name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vendor(vendor_name: str, svc: VendorService = Depends(_svc)):
    await svc.delete_vendor(vendor_name)
