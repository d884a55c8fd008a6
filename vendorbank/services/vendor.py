"""Vendor service — business rules on top of the record repository.

Rule: No SQLAlchemy / no FastAPI here. Pure Python business logic.
"""


import logging

from vendorbank.core.exceptions import NotFoundError, ValidationError
from vendorbank.repositories.vendor import VendorRecordRepository
from vendorbank.schemas.vendor import VendorRecord

logger = logging.getLogger(__name__)

class VendorService:
    def __init__(self, repo: VendorRecordRepository):
        self._repo = repo

    async def list_vendors(self, search: str | None = None) -> list[VendorRecord]:
        """All vendors by name; ``search`` keeps names containing it (case-insensitive)."""
        records = await self._repo.list_all()
        term = (search or "").strip().lower()
        if not term:
            return records
        return [r for r in records if term in r.vendor_name.lower()]

    async def get_vendor(self, vendor_name: str) -> VendorRecord:
        record = await self._repo.get(vendor_name)
        if record is None:
            raise NotFoundError("Vendor", vendor_name)
        return record

    async def save_vendor(self, data: VendorRecord) -> tuple[VendorRecord, bool]:
        created = await self._repo.upsert(data)
        logger.info(
            "Vendor '%s' %s", data.vendor_name, "added to the data bank" if created else "updated",
        )
        return data, created

    async def update_vendor(self, vendor_name: str, data: VendorRecord) -> VendorRecord:
        # Keys are immutable on edit; renames go through rename_vendor.
        if data.vendor_name != vendor_name:
            raise ValidationError(
                f"Vendor name in body ('{data.vendor_name}') does not match '{vendor_name}'; "
                "use the rename endpoint to change a vendor name"
            )
        _ = await self.get_vendor(vendor_name)  # raises 404 if missing
        await self._repo.upsert(data)
        return data

    async def rename_vendor(self, vendor_name: str, new_vendor_name: str) -> VendorRecord:
        await self._repo.rename(vendor_name, new_vendor_name)
        logger.info("Vendor '%s' renamed to '%s'", vendor_name, new_vendor_name)
        return await self.get_vendor(new_vendor_name)

    async def delete_vendor(self, vendor_name: str) -> None:
        await self._repo.remove(vendor_name)
