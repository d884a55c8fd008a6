import asyncio

import pytest

from vendorbank.core.exceptions import AdapterIOError
from vendorbank.repositories.vendor import VendorRecordRepository
from vendorbank.schemas.vendor import VendorRecord
from vendorbank.storage.base import DurabilityAdapter


class MemoryAdapter(DurabilityAdapter):
    """In-process medium with switchable failures and an optional save delay."""

    name = "memory"

    def __init__(self, snapshot: bytes | None = None):
        self.snapshot = snapshot
        self.loads = 0
        self.saves = 0
        self.fail_loads = False
        self.fail_saves = False
        self.save_delay = 0.0
        self.closed = False

    async def load(self) -> bytes | None:
        self.loads += 1
        await asyncio.sleep(0)
        if self.fail_loads:
            raise AdapterIOError("medium offline")
        return self.snapshot

    async def save(self, snapshot: bytes) -> None:
        await asyncio.sleep(self.save_delay)
        if self.fail_saves:
            raise AdapterIOError("storage quota exceeded")
        self.snapshot = snapshot
        self.saves += 1

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def make_repo(adapter):
    def _make(**kwargs) -> VendorRecordRepository:
        return VendorRecordRepository(kwargs.pop("adapter", adapter), **kwargs)

    return _make


@pytest.fixture
def repo(make_repo) -> VendorRecordRepository:
    return make_repo()


@pytest.fixture
def acme() -> VendorRecord:
    return VendorRecord(
        vendor_name="Acme Corp",
        quantitative_score="3.5",
        altman_z_risk_category="Moderate Risk",
    )
