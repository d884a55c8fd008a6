"""VendorRecordRepository: upsert/remove semantics, durability, ordering, lifecycle."""

import asyncio
import traceback

import pytest

from vendorbank.core.exceptions import (
    AdapterIOError,
    ConflictError,
    EngineLoadError,
    InvalidKeyError,
    NotFoundError,
    RepositoryUnavailableError,
    SnapshotCorruptError,
)
from vendorbank.db.engine import SnapshotEngine
from vendorbank.repositories.base import RepositoryState
from vendorbank.schemas.vendor import VendorRecord


def names(records):
    return [r.vendor_name for r in records]


class BrokenEngine(SnapshotEngine):
    """Engine whose runtime can never be loaded."""

    opened = 0

    @classmethod
    def create(cls):
        cls.opened += 1
        raise EngineLoadError("sqlite runtime missing")

    @classmethod
    def load_from_snapshot(cls, data):
        cls.opened += 1
        raise EngineLoadError("sqlite runtime missing")


# ---------------------------------------------------------------------------
# Record semantics
# ---------------------------------------------------------------------------

class TestUpsert:
    async def test_acme_scenario(self, repo, acme):
        assert await repo.upsert(acme) is True

        records = await repo.list_all()
        assert records == [acme]
        assert records[0].tender_title is None
        assert records[0].overall_financial_evaluation_result is None

        await repo.remove("Acme Corp")
        assert await repo.list_all() == []

    async def test_last_upsert_wins_for_a_key(self, repo):
        for score in ("1.0", "2.0", "3.0"):
            await repo.upsert(VendorRecord(vendor_name="Acme Corp", quantitative_score=score))
        records = await repo.list_all()
        assert len(records) == 1
        assert records[0].quantitative_score == "3.0"

    async def test_update_overwrites_all_non_key_fields(self, repo):
        await repo.upsert(VendorRecord(vendor_name="Acme Corp", tender_title="Chairs", altman_z_band="B"))
        created = await repo.upsert(VendorRecord(vendor_name="Acme Corp", tender_title="Desks"))
        assert created is False
        record = await repo.get("Acme Corp")
        assert record.tender_title == "Desks"
        assert record.altman_z_band is None

    async def test_identical_upsert_is_idempotent(self, repo, acme):
        await repo.upsert(acme)
        before = await repo.list_all()
        await repo.upsert(acme)
        assert await repo.list_all() == before

    async def test_list_is_ordered_by_key(self, repo):
        for name in ("Zeta", "Alpha", "Mike"):
            await repo.upsert(VendorRecord(vendor_name=name))
        assert names(await repo.list_all()) == ["Alpha", "Mike", "Zeta"]

    async def test_keys_are_case_sensitive(self, repo):
        await repo.upsert(VendorRecord(vendor_name="acme"))
        await repo.upsert(VendorRecord(vendor_name="Acme"))
        assert names(await repo.list_all()) == ["Acme", "acme"]

    @pytest.mark.parametrize("bad", ["", "   "])
    async def test_empty_key_rejected_before_engine(self, repo, adapter, bad):
        with pytest.raises(InvalidKeyError):
            await repo.upsert(VendorRecord(vendor_name=bad))
        assert repo.state is RepositoryState.UNINITIALIZED
        assert adapter.loads == 0

    async def test_numbers_from_forms_are_stored_as_text(self, repo):
        record = VendorRecord.model_validate({"vendorName": "Acme Corp", "altmanZScore": 2.9})
        await repo.upsert(record)
        assert (await repo.get("Acme Corp")).altman_z_score == "2.9"

    async def test_get_missing_returns_none(self, repo):
        assert await repo.get("Nobody") is None


class TestRemove:
    async def test_remove_twice_is_harmless(self, repo, acme):
        await repo.upsert(acme)
        await repo.upsert(VendorRecord(vendor_name="Globex"))
        await repo.remove("Acme Corp")
        after_first = await repo.list_all()
        await repo.remove("Acme Corp")
        assert await repo.list_all() == after_first == [VendorRecord(vendor_name="Globex")]

    async def test_remove_persists(self, make_repo, adapter, acme):
        repo = make_repo()
        await repo.upsert(acme)
        await repo.remove("Acme Corp")
        assert await make_repo().list_all() == []


class TestRename:
    async def test_rename_keeps_fields(self, repo, acme):
        await repo.upsert(acme)
        await repo.rename("Acme Corp", "Acme Corporation")
        assert names(await repo.list_all()) == ["Acme Corporation"]
        assert (await repo.get("Acme Corporation")).quantitative_score == "3.5"

    async def test_rename_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            await repo.rename("Nobody", "Somebody")

    async def test_rename_onto_existing_raises(self, repo, acme):
        await repo.upsert(acme)
        await repo.upsert(VendorRecord(vendor_name="Globex"))
        with pytest.raises(ConflictError):
            await repo.rename("Acme Corp", "Globex")
        assert names(await repo.list_all()) == ["Acme Corp", "Globex"]

    async def test_rename_to_empty_raises(self, repo, acme):
        await repo.upsert(acme)
        with pytest.raises(InvalidKeyError):
            await repo.rename("Acme Corp", " ")


# ---------------------------------------------------------------------------
# Durability
# ---------------------------------------------------------------------------

class TestDurability:
    async def test_restart_restores_records(self, make_repo, acme):
        first = make_repo()
        await first.upsert(acme)
        await first.upsert(VendorRecord(vendor_name="Globex", tender_number="TND-2024-001"))

        second = make_repo()
        records = await second.list_all()
        assert records == [acme, VendorRecord(vendor_name="Globex", tender_number="TND-2024-001")]

    async def test_every_mutation_saves_full_snapshot(self, repo, adapter, acme):
        await repo.upsert(acme)
        await repo.upsert(VendorRecord(vendor_name="Globex"))
        await repo.remove("Globex")
        assert adapter.saves == 3
        restored = SnapshotEngine.load_from_snapshot(adapter.snapshot)
        restored.dispose()

    async def test_list_all_does_not_save(self, repo, adapter):
        await repo.list_all()
        await repo.list_all()
        assert adapter.saves == 0

    async def test_failed_save_propagates_and_keeps_memory(self, repo, adapter, acme):
        adapter.fail_saves = True
        with pytest.raises(AdapterIOError):
            await repo.upsert(acme)
        assert repo.is_dirty
        assert await repo.list_all() == [acme]
        assert adapter.snapshot is None

    async def test_next_mutation_persists_earlier_unsaved_change(self, make_repo, adapter, acme):
        repo = make_repo()
        adapter.fail_saves = True
        with pytest.raises(AdapterIOError):
            await repo.upsert(acme)
        adapter.fail_saves = False
        await repo.upsert(VendorRecord(vendor_name="Globex"))
        assert not repo.is_dirty
        assert names(await make_repo().list_all()) == ["Acme Corp", "Globex"]

    async def test_flush_retries_persistence(self, make_repo, adapter, acme):
        repo = make_repo()
        adapter.fail_saves = True
        with pytest.raises(AdapterIOError):
            await repo.upsert(acme)
        adapter.fail_saves = False
        assert await repo.flush() is True
        assert await repo.flush() is False
        assert names(await make_repo().list_all()) == ["Acme Corp"]


# ---------------------------------------------------------------------------
# Ordering under interleaving
# ---------------------------------------------------------------------------

class TestSerializedWrites:
    async def test_unawaited_upserts_are_not_lost(self, make_repo, adapter):
        adapter.save_delay = 0.01
        repo = make_repo()
        first = asyncio.ensure_future(repo.upsert(VendorRecord(vendor_name="A")))
        second = asyncio.ensure_future(repo.upsert(VendorRecord(vendor_name="B")))
        await asyncio.gather(first, second)

        assert names(await repo.list_all()) == ["A", "B"]
        assert names(await make_repo().list_all()) == ["A", "B"]

    async def test_writes_apply_in_call_order(self, repo, adapter):
        adapter.save_delay = 0.01
        await asyncio.gather(*(
            repo.upsert(VendorRecord(vendor_name="Acme Corp", quantitative_score=str(i)))
            for i in range(5)
        ))
        assert (await repo.get("Acme Corp")).quantitative_score == "4"

    async def test_upsert_then_remove_in_call_order(self, repo, adapter, acme):
        adapter.save_delay = 0.01
        await asyncio.gather(repo.upsert(acme), repo.remove("Acme Corp"))
        assert await repo.list_all() == []


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestLifecycle:
    async def test_lazy_initialization(self, repo, adapter):
        assert repo.state is RepositoryState.UNINITIALIZED
        assert adapter.loads == 0
        await repo.list_all()
        assert repo.state is RepositoryState.READY

    async def test_concurrent_first_calls_share_one_initialization(self, repo, adapter):
        results = await asyncio.gather(repo.list_all(), repo.list_all(), repo.get("x"))
        assert results == [[], [], None]
        assert adapter.loads == 1

    async def test_engine_load_failure_is_memoized(self, make_repo, adapter):
        BrokenEngine.opened = 0
        repo = make_repo(engine_factory=BrokenEngine)
        with pytest.raises(RepositoryUnavailableError) as first:
            await repo.list_all()
        assert isinstance(first.value.cause, EngineLoadError)
        assert repo.state is RepositoryState.FAILED

        with pytest.raises(RepositoryUnavailableError) as second:
            await repo.upsert(VendorRecord(vendor_name="Acme Corp"))
        assert second.value.cause is first.value.cause
        assert BrokenEngine.opened == 1
        assert adapter.loads == 1

    async def test_repeated_failures_do_not_accumulate_tracebacks(self, make_repo):
        repo = make_repo(engine_factory=BrokenEngine)
        raised = []
        for _ in range(4):
            with pytest.raises(RepositoryUnavailableError) as exc:
                await repo.list_all()
            raised.append(exc.value)

        cause = raised[0].cause
        depths = [len(traceback.extract_tb(e.__traceback__)) for e in raised[1:]]
        assert len(set(depths)) == 1
        assert len({id(e) for e in raised}) == len(raised)
        assert all(e.cause is cause for e in raised)

    async def test_load_io_failure_is_fatal_until_reset(self, repo, adapter):
        adapter.fail_loads = True
        with pytest.raises(RepositoryUnavailableError) as exc:
            await repo.list_all()
        assert isinstance(exc.value.cause, AdapterIOError)

        adapter.fail_loads = False
        with pytest.raises(RepositoryUnavailableError):
            await repo.list_all()

        await repo.reset()
        assert repo.state is RepositoryState.UNINITIALIZED
        assert await repo.list_all() == []
        assert repo.state is RepositoryState.READY

    async def test_corrupt_snapshot_discarded_by_default(self, make_repo, adapter, acme):
        adapter.snapshot = b"SQLite format 3\x00 garbled beyond repair"
        repo = make_repo()
        assert await repo.list_all() == []
        assert repo.is_dirty

        await repo.upsert(acme)
        assert names(await make_repo().list_all()) == ["Acme Corp"]

    async def test_corrupt_snapshot_fatal_when_not_discarding(self, make_repo, adapter):
        adapter.snapshot = b"garbage"
        repo = make_repo(discard_corrupt_snapshot=False)
        with pytest.raises(RepositoryUnavailableError) as exc:
            await repo.list_all()
        assert isinstance(exc.value.cause, SnapshotCorruptError)
        assert adapter.snapshot == b"garbage"

    async def test_truncated_snapshot_never_yields_partial_table(self, make_repo, adapter, acme):
        seed = make_repo()
        for name in ("Alpha", "Mike", "Zeta"):
            await seed.upsert(VendorRecord(vendor_name=name))
        adapter.snapshot = adapter.snapshot[: len(adapter.snapshot) - 100]

        assert await make_repo().list_all() == []

    async def test_close_releases_adapter(self, repo, adapter, acme):
        await repo.upsert(acme)
        await repo.close()
        assert adapter.closed
        assert repo.state is RepositoryState.UNINITIALIZED
