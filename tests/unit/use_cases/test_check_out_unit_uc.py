"""Tests for CheckOutUnitUseCase."""

from datetime import date
from unittest.mock import AsyncMock

import pytest

from src.application.dto.requests import UnitCheckOutRequest
from src.application.use_cases.check_out_unit import CheckOutUnitUseCase
from src.core.entities.inventory import Transaction, TransactionType
from src.core.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    UnitNotFoundError,
)


@pytest.fixture
def mock_inventory_store():
    return AsyncMock()


@pytest.fixture
def use_case(mock_inventory_store):
    return CheckOutUnitUseCase(inventory_store=mock_inventory_store)


class TestCheckOutUnitUseCase:
    async def test_takes_whole_unit(self, use_case, mock_inventory_store, make_unit):
        mock_inventory_store.get_unit.return_value = make_unit("C", 2, date(2024, 1, 1))
        mock_inventory_store.commit_check_out.return_value = [
            Transaction(
                id=7, unit_id="C", transaction_type=TransactionType.CHECK_OUT,
                quantity=2, acting_user="nurse",
            )
        ]

        result = await use_case.execute(
            UnitCheckOutRequest(unit_id="C", quantity=2, acting_user="nurse")
        )

        assert [(e.unit_id, e.quantity_taken) for e in result.plan.entries] == [("C", 2)]
        assert use_case.to_response(result).transaction_ids == [7]

    async def test_over_request_does_not_pull_from_other_units(
        self, use_case, mock_inventory_store, make_unit
    ):
        mock_inventory_store.get_unit.return_value = make_unit("C", 2, date(2024, 1, 1))

        with pytest.raises(InsufficientStockError) as exc_info:
            await use_case.execute(
                UnitCheckOutRequest(unit_id="C", quantity=5, acting_user="nurse")
            )

        assert exc_info.value.max_fulfillable == 2
        assert exc_info.value.scope == "unit"
        mock_inventory_store.find_units_by_match_key.assert_not_called()
        mock_inventory_store.commit_check_out.assert_not_called()

    async def test_unknown_unit(self, use_case, mock_inventory_store):
        mock_inventory_store.get_unit.return_value = None

        with pytest.raises(UnitNotFoundError):
            await use_case.execute(
                UnitCheckOutRequest(unit_id="NOPE", quantity=1, acting_user="nurse")
            )

    async def test_negative_quantity(self, use_case, mock_inventory_store):
        with pytest.raises(InvalidRequestError):
            await use_case.execute(
                UnitCheckOutRequest(unit_id="C", quantity=-2, acting_user="nurse")
            )
        mock_inventory_store.get_unit.assert_not_called()
