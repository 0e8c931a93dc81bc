"""Tests for SQLite inventory store."""

import asyncio
from datetime import date, datetime, timedelta

import aiosqlite
import pytest

from src.core.entities import (
    Drug,
    InventoryUnit,
    Lot,
    MatchKey,
    SortOrder,
    StockFilter,
    TransactionFilter,
    TransactionType,
    UnitFilter,
    UnitSortField,
)
from src.core.exceptions import (
    CommitConflictError,
    DatabaseError,
    InvalidRequestError,
    UnitNotFoundError,
)
from src.core.services import FEFOAllocator
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore


@pytest.fixture
def store(pooled_db) -> SQLiteInventoryStore:
    return SQLiteInventoryStore()


async def _drug(store: SQLiteInventoryStore, **overrides) -> Drug:
    data = {
        "medication_name": "Amoxicillin",
        "strength": 500,
        "strength_unit": "mg",
        "ndc_id": "0093-4155-73",
    }
    data.update(overrides)
    return await store.create_drug(Drug(**data))


async def _unit(
    store: SQLiteInventoryStore,
    drug: Drug,
    unit_id: str,
    available: float,
    expiry: date,
    total: float | None = None,
    created_at: datetime | None = None,
    lot_id: int | None = None,
) -> InventoryUnit:
    created_at = created_at or datetime.utcnow()
    unit = InventoryUnit(
        id=unit_id,
        drug_id=drug.id,
        lot_id=lot_id,
        total_quantity=total if total is not None else available,
        available_quantity=available,
        expiry_date=expiry,
        created_at=created_at,
        updated_at=created_at,
    )
    units, _ = await store.create_units([unit], acting_user="pharmacist")
    return units[0]


class TestDrugsAndLots:
    async def test_create_and_get_drug(self, store):
        drug = await _drug(store)
        fetched = await store.get_drug(drug.id)
        assert fetched is not None
        assert fetched.ndc_id == "0093-4155-73"

    async def test_find_drug_by_ndc_trimmed(self, store):
        drug = await _drug(store, ndc_id="  0093-4155-73 ")
        found = await store.find_drug(MatchKey(ndc_id="0093-4155-73"))
        assert found is not None and found.id == drug.id

    async def test_find_drug_by_name_case_insensitive(self, store):
        drug = await _drug(store, medication_name="Ibuprofen", strength=200, ndc_id=None)
        found = await store.find_drug(
            MatchKey(medication_name="IBUPROFEN", strength=200.0, strength_unit="MG")
        )
        assert found is not None and found.id == drug.id

    async def test_find_drug_strength_mismatch(self, store):
        await _drug(store, medication_name="Ibuprofen", strength=200, ndc_id=None)
        found = await store.find_drug(
            MatchKey(medication_name="Ibuprofen", strength=400, strength_unit="mg")
        )
        assert found is None

    async def test_lots(self, store):
        first = await store.create_lot(Lot(lot_code="L-1", location="Shelf A"))
        second = await store.create_lot(Lot(lot_code="L-2"))

        assert (await store.get_lot(first.id)).location == "Shelf A"
        assert await store.get_lot(9999) is None
        assert {lot.id for lot in await store.list_lots()} == {first.id, second.id}


class TestUnits:
    async def test_create_units_writes_check_in(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 30, date(2025, 1, 1))

        unit = await store.get_unit("U1")
        assert unit is not None
        assert unit.drug.medication_name == "Amoxicillin"
        assert unit.available_quantity == 30

        transactions, total = await store.list_transactions(TransactionFilter(unit_id="U1"))
        assert total == 1
        assert transactions[0].transaction_type == TransactionType.CHECK_IN
        assert transactions[0].quantity == 30

    async def test_get_unit_missing(self, store):
        assert await store.get_unit("NOPE") is None

    async def test_get_units_skips_missing(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 5, date(2025, 1, 1))
        units = await store.get_units(["U1", "NOPE"])
        assert [u.id for u in units] == ["U1"]

    async def test_find_units_by_match_key_fefo_order(self, store):
        drug = await _drug(store)
        other = await _drug(store, medication_name="Ibuprofen", ndc_id="111")
        await _unit(store, drug, "LATE", 5, date(2024, 2, 1))
        await _unit(store, drug, "EARLY", 3, date(2024, 1, 1))
        await _unit(store, drug, "EMPTY", 0, date(2023, 1, 1), total=10)
        await _unit(store, other, "OTHER", 9, date(2023, 1, 1))

        units = await store.find_units_by_match_key(MatchKey(ndc_id="0093-4155-73"))

        assert [u.id for u in units] == ["EARLY", "LATE"]

    async def test_create_units_inserts_new_drug(self, store):
        drug = Drug(medication_name="Cefalexin", strength=250, strength_unit="mg")
        unit = InventoryUnit(
            id="C1", drug_id=0, total_quantity=10, available_quantity=10,
            expiry_date=date(2025, 1, 1),
        )

        units, _ = await store.create_units([unit], acting_user="pharmacist", drug=drug)

        assert drug.id is not None
        assert units[0].drug_id == drug.id
        assert (await store.get_unit("C1")).drug.medication_name == "Cefalexin"

    async def test_failed_check_in_leaves_no_drug(self, store):
        existing = await _drug(store)
        await _unit(store, existing, "DUP", 5, date(2025, 1, 1))
        drug = Drug(medication_name="Cefalexin", strength=250, strength_unit="mg")
        unit = InventoryUnit(
            id="DUP", drug_id=0, total_quantity=10, available_quantity=10,
            expiry_date=date(2025, 1, 1),
        )

        with pytest.raises(DatabaseError):
            await store.create_units([unit], acting_user="pharmacist", drug=drug)

        key = MatchKey(medication_name="Cefalexin", strength=250, strength_unit="mg")
        assert await store.find_drug(key) is None


class TestSearchUnits:
    async def test_text_query_and_stock(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 5, date(2025, 1, 1))
        await _unit(store, drug, "U2", 0, date(2025, 1, 1), total=5)

        units, total = await store.search_units(UnitFilter(query="amox"))
        assert [u.id for u in units] == ["U1"]
        assert total == 1

        units, total = await store.search_units(UnitFilter(query="amox", stock=StockFilter.ALL))
        assert {u.id for u in units} == {"U1", "U2"}
        assert total == 2

        units, _ = await store.search_units(UnitFilter(stock=StockFilter.OUT_OF_STOCK))
        assert [u.id for u in units] == ["U2"]

        assert await store.search_units(UnitFilter(query="zzz")) == ([], 0)

    async def test_default_filter_is_fefo(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "LATE", 5, date(2025, 3, 1))
        await _unit(store, drug, "EARLY", 5, date(2025, 1, 1))

        units, _ = await store.search_units()
        assert [u.id for u in units] == ["EARLY", "LATE"]

    async def test_expiry_range_inclusive(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "JAN", 5, date(2025, 1, 1))
        await _unit(store, drug, "FEB", 5, date(2025, 2, 1))
        await _unit(store, drug, "MAR", 5, date(2025, 3, 1))

        units, total = await store.search_units(
            UnitFilter(expiry_start=date(2025, 1, 1), expiry_end=date(2025, 2, 1))
        )

        assert [u.id for u in units] == ["JAN", "FEB"]
        assert total == 2

    async def test_lot_and_location(self, store):
        drug = await _drug(store)
        fridge = await store.create_lot(Lot(lot_code="L-1", location="Fridge B"))
        shelf = await store.create_lot(Lot(lot_code="L-2", location="Shelf A"))
        await _unit(store, drug, "COLD", 5, date(2025, 1, 1), lot_id=fridge.id)
        await _unit(store, drug, "DRY", 5, date(2025, 1, 1), lot_id=shelf.id)
        await _unit(store, drug, "LOOSE", 5, date(2025, 1, 1))

        units, _ = await store.search_units(UnitFilter(lot_id=shelf.id))
        assert [u.id for u in units] == ["DRY"]

        units, _ = await store.search_units(UnitFilter(location="fridge"))
        assert [u.id for u in units] == ["COLD"]

    async def test_sort_options(self, store):
        amox = await _drug(store)
        ibu = await _drug(store, medication_name="Ibuprofen", ndc_id="111")
        base = datetime(2024, 1, 1, 9, 0, 0)
        await _unit(store, ibu, "I1", 2, date(2025, 1, 1), created_at=base)
        await _unit(store, amox, "A1", 9, date(2025, 6, 1), created_at=base + timedelta(minutes=1))
        await _unit(store, amox, "A2", 4, date(2025, 3, 1), created_at=base + timedelta(minutes=2))

        async def ids(sort_by, order=SortOrder.ASC):
            units, _ = await store.search_units(UnitFilter(sort_by=sort_by, sort_order=order))
            return [u.id for u in units]

        assert await ids(UnitSortField.MEDICATION_NAME) == ["A2", "A1", "I1"]
        assert await ids(UnitSortField.MEDICATION_NAME, SortOrder.DESC) == ["I1", "A2", "A1"]
        assert await ids(UnitSortField.EXPIRY_DATE, SortOrder.DESC) == ["A1", "A2", "I1"]
        assert await ids(UnitSortField.QUANTITY) == ["I1", "A2", "A1"]
        assert await ids(UnitSortField.CREATED_DATE, SortOrder.DESC) == ["A2", "A1", "I1"]

    async def test_total_counts_all_pages(self, store):
        drug = await _drug(store)
        for i in range(5):
            await _unit(store, drug, f"U{i}", 1, date(2025, 1, i + 1))

        units, total = await store.search_units(UnitFilter(), limit=2, offset=2)

        assert [u.id for u in units] == ["U2", "U3"]
        assert total == 5


class TestCommitCheckOut:
    async def test_commit_decrements_and_logs(self, store):
        drug = await _drug(store)
        a = await _unit(store, drug, "A", 3, date(2024, 1, 1))
        b = await _unit(store, drug, "B", 5, date(2024, 2, 1))
        a.drug = b.drug = drug

        plan = FEFOAllocator().allocate([a, b], 4)
        transactions = await store.commit_check_out(
            plan, acting_user="nurse", patient_name="Jane Doe"
        )

        assert [t.unit_id for t in transactions] == ["A", "B"]
        assert all(t.id is not None for t in transactions)
        assert (await store.get_unit("A")).available_quantity == 0
        assert (await store.get_unit("B")).available_quantity == 4

        logged, total = await store.list_transactions(
            TransactionFilter(transaction_type=TransactionType.CHECK_OUT)
        )
        assert total == 2
        assert {t.patient_name for t in logged} == {"Jane Doe"}
        assert sum(t.quantity for t in logged) == 4

    async def test_stale_plan_conflicts_and_rolls_back(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "D", 5, date(2024, 1, 1))
        snapshot = await store.get_unit("D")

        allocator = FEFOAllocator()
        first = allocator.allocate_unit(snapshot, 5)
        second = allocator.allocate_unit(snapshot, 5)

        await store.commit_check_out(first, acting_user="nurse-1")
        with pytest.raises(CommitConflictError) as exc_info:
            await store.commit_check_out(second, acting_user="nurse-2")

        assert exc_info.value.unit_id == "D"
        assert (await store.get_unit("D")).available_quantity == 0
        _, total = await store.list_transactions(
            TransactionFilter(transaction_type=TransactionType.CHECK_OUT)
        )
        assert total == 1

    async def test_conflict_on_later_entry_undoes_earlier_entries(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "A", 3, date(2024, 1, 1))
        await _unit(store, drug, "B", 5, date(2024, 2, 1))
        units = await store.find_units_by_match_key(MatchKey(ndc_id="0093-4155-73"))
        plan = FEFOAllocator().allocate(units, 8)

        # Someone drains B after the plan was computed
        b = await store.get_unit("B")
        await store.commit_check_out(FEFOAllocator().allocate_unit(b, 4), acting_user="x")

        with pytest.raises(CommitConflictError):
            await store.commit_check_out(plan, acting_user="nurse")

        assert (await store.get_unit("A")).available_quantity == 3
        assert (await store.get_unit("B")).available_quantity == 1

    async def test_concurrent_commits_one_wins(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "D", 5, date(2024, 1, 1))
        snapshot = await store.get_unit("D")
        allocator = FEFOAllocator()

        results = await asyncio.gather(
            store.commit_check_out(allocator.allocate_unit(snapshot, 5), acting_user="n1"),
            store.commit_check_out(allocator.allocate_unit(snapshot, 5), acting_user="n2"),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, CommitConflictError)]
        successes = [r for r in results if isinstance(r, list)]
        assert len(conflicts) == 1
        assert len(successes) == 1
        assert (await store.get_unit("D")).available_quantity == 0

    async def test_transactions_are_append_only(self, store, pooled_db):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 5, date(2025, 1, 1))

        async with aiosqlite.connect(pooled_db) as conn:
            with pytest.raises(aiosqlite.IntegrityError):
                await conn.execute("DELETE FROM inventory_transactions")


class TestAdjustUnit:
    async def test_adjust_records_signed_delta(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 10, date(2025, 1, 1))

        unit, txn = await store.adjust_unit(
            "U1", acting_user="admin", available_quantity=6, reason="recount"
        )

        assert unit.available_quantity == 6
        assert txn.transaction_type == TransactionType.ADJUST
        assert txn.quantity == -4
        assert txn.notes == "recount"
        assert (await store.get_unit("U1")).available_quantity == 6

    async def test_adjust_expiry(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 10, date(2025, 1, 1))

        await store.adjust_unit("U1", acting_user="admin", expiry_date=date(2025, 3, 1))

        assert (await store.get_unit("U1")).expiry_date == date(2025, 3, 1)

    async def test_adjust_invalid_writes_nothing(self, store):
        drug = await _drug(store)
        await _unit(store, drug, "U1", 10, date(2025, 1, 1))

        with pytest.raises(InvalidRequestError):
            await store.adjust_unit("U1", acting_user="admin", available_quantity=11)

        _, total = await store.list_transactions(
            TransactionFilter(transaction_type=TransactionType.ADJUST)
        )
        assert total == 0

    async def test_adjust_missing_unit(self, store):
        with pytest.raises(UnitNotFoundError):
            await store.adjust_unit("NOPE", acting_user="admin", total_quantity=1)


class TestReporting:
    async def test_list_transactions_filters_and_paging(self, store):
        amox = await _drug(store)
        ibu = await _drug(store, medication_name="Ibuprofen", ndc_id="111")
        for i in range(3):
            await _unit(store, amox, f"A{i}", 5, date(2025, 1, 1))
        await _unit(store, ibu, "I0", 5, date(2025, 1, 1))

        page, total = await store.list_transactions(
            TransactionFilter(medication_name="amox"), limit=2, offset=0
        )
        assert total == 3
        assert len(page) == 2
        assert all(t.medication_name == "Amoxicillin" for t in page)

        today = datetime.utcnow().date()
        _, total = await store.list_transactions(
            TransactionFilter(start_date=today, end_date=today)
        )
        assert total == 4

        _, total = await store.list_transactions(
            TransactionFilter(end_date=today - timedelta(days=1))
        )
        assert total == 0

    async def test_stats(self, store):
        amox = await _drug(store)
        ibu = await _drug(store, medication_name="Ibuprofen", ndc_id="111")
        today = date.today()
        await _unit(store, amox, "SOON", 20, today + timedelta(days=5))
        await _unit(store, amox, "EXPIRED", 2, today - timedelta(days=5))
        await _unit(store, amox, "LATER", 20, today + timedelta(days=200))
        await _unit(store, ibu, "LOW", 3, today + timedelta(days=200))
        await _unit(store, ibu, "EMPTY", 0, today + timedelta(days=1), total=3)

        snapshot = await store.get_unit("LATER")
        await store.commit_check_out(
            FEFOAllocator().allocate_unit(snapshot, 1), acting_user="nurse"
        )

        stats = await store.get_stats(
            expiring_before=today + timedelta(days=30),
            recent_since=datetime.utcnow() - timedelta(days=7),
            low_stock_threshold=10,
        )

        assert stats.total_units == 4
        assert stats.units_expiring_soon == 2
        assert stats.recent_check_ins == 5
        assert stats.recent_check_outs == 1
        assert stats.low_stock_alerts == 1
