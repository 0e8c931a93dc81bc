"""Tests for inventory entities."""

from datetime import date, datetime

import pytest
from pydantic import ValidationError

from src.core.entities.inventory import (
    Drug,
    InventoryStats,
    InventoryUnit,
    Lot,
    Transaction,
    TransactionFilter,
    TransactionType,
)


class TestDrug:
    """Tests for Drug entity."""

    def test_display_name_with_strength(self):
        drug = Drug(medication_name="Amoxicillin", strength=500, strength_unit="mg")
        assert drug.display_name == "Amoxicillin 500mg"

    def test_display_name_fractional_strength(self):
        drug = Drug(medication_name="Levothyroxine", strength=0.05, strength_unit="mg")
        assert drug.display_name == "Levothyroxine 0.05mg"

    def test_display_name_without_strength(self):
        drug = Drug(medication_name="Saline")
        assert drug.display_name == "Saline"


class TestLot:
    def test_defaults(self):
        lot = Lot(lot_code="DONATION-01")
        assert lot.id is None
        assert lot.location is None
        assert isinstance(lot.created_at, datetime)


class TestInventoryUnit:
    """Tests for InventoryUnit entity."""

    def test_valid_unit(self):
        unit = InventoryUnit(
            id="U1",
            drug_id=1,
            total_quantity=30,
            available_quantity=12,
            expiry_date=date(2025, 1, 1),
        )
        assert unit.available_quantity == 12
        assert unit.drug is None
        assert not unit.is_exhausted

    def test_exhausted(self):
        unit = InventoryUnit(
            id="U1", drug_id=1, total_quantity=30, available_quantity=0,
            expiry_date=date(2025, 1, 1),
        )
        assert unit.is_exhausted

    def test_available_cannot_exceed_total(self):
        with pytest.raises(ValidationError, match="must not exceed total_quantity"):
            InventoryUnit(
                id="U1", drug_id=1, total_quantity=10, available_quantity=11,
                expiry_date=date(2025, 1, 1),
            )

    def test_negative_available_rejected(self):
        with pytest.raises(ValidationError, match="available_quantity must not be negative"):
            InventoryUnit(
                id="U1", drug_id=1, total_quantity=10, available_quantity=-1,
                expiry_date=date(2025, 1, 1),
            )

    def test_negative_total_rejected(self):
        with pytest.raises(ValidationError, match="total_quantity must not be negative"):
            InventoryUnit(
                id="U1", drug_id=1, total_quantity=-1, available_quantity=0,
                expiry_date=date(2025, 1, 1),
            )

    def test_is_expired(self):
        unit = InventoryUnit(
            id="U1", drug_id=1, total_quantity=10, available_quantity=10,
            expiry_date=date(2024, 3, 1),
        )
        assert unit.is_expired(on=date(2024, 3, 2))
        assert not unit.is_expired(on=date(2024, 3, 1))
        assert not unit.is_expired(on=date(2024, 2, 1))


class TestTransaction:
    def test_type_values(self):
        assert TransactionType.CHECK_IN.value == "check_in"
        assert TransactionType.CHECK_OUT.value == "check_out"
        assert TransactionType.ADJUST.value == "adjust"

    def test_type_from_string(self):
        txn = Transaction(
            unit_id="U1", transaction_type="check_out", quantity=3, acting_user="nurse"
        )
        assert txn.transaction_type == TransactionType.CHECK_OUT
        assert txn.patient_name is None
        assert isinstance(txn.timestamp, datetime)

    def test_adjust_allows_negative_delta(self):
        txn = Transaction(
            unit_id="U1", transaction_type=TransactionType.ADJUST, quantity=-4,
            acting_user="admin",
        )
        assert txn.quantity == -4


class TestFiltersAndStats:
    def test_empty_filter(self):
        f = TransactionFilter()
        assert f.transaction_type is None
        assert f.start_date is None

    def test_stats_defaults(self):
        stats = InventoryStats()
        assert stats.total_units == 0
        assert stats.low_stock_alerts == 0
