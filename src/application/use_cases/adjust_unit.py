"""Adjust Unit Use Case: manual correction of a unit's quantities or expiry."""

import math
from dataclasses import dataclass

from src.application.dto.requests import AdjustUnitRequest
from src.application.dto.responses import (
    AdjustUnitResponse,
    TransactionResponse,
    UnitResponse,
)
from src.config import get_logger
from src.core.entities.inventory import InventoryUnit, Transaction
from src.core.exceptions import InvalidRequestError
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


@dataclass
class AdjustUnitResult:
    """Result of a unit adjustment."""

    unit: InventoryUnit
    transaction: Transaction


class AdjustUnitUseCase:
    """Correct a unit and record the signed change as an adjust transaction."""

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
    ):
        self._inventory_store = inventory_store

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(self, unit_id: str, request: AdjustUnitRequest) -> AdjustUnitResult:
        """Execute adjustment."""
        if (
            request.total_quantity is None
            and request.available_quantity is None
            and request.expiry_date is None
            and request.notes is None
        ):
            raise InvalidRequestError("body", "no changes requested")
        for field, value in (
            ("total_quantity", request.total_quantity),
            ("available_quantity", request.available_quantity),
        ):
            if value is not None and not math.isfinite(value):
                raise InvalidRequestError(field, "must be a finite number", value)

        logger.info(
            "adjust_unit_started",
            unit_id=unit_id,
            total=request.total_quantity,
            available=request.available_quantity,
            acting_user=request.acting_user,
        )

        store = await self._get_inventory_store()

        # Bounds are checked inside the store's write transaction
        unit, transaction = await store.adjust_unit(
            unit_id,
            acting_user=request.acting_user,
            total_quantity=request.total_quantity,
            available_quantity=request.available_quantity,
            expiry_date=request.expiry_date,
            notes=request.notes,
            reason=request.reason,
        )

        return AdjustUnitResult(unit=unit, transaction=transaction)

    def to_response(self, result: AdjustUnitResult) -> AdjustUnitResponse:
        """Convert result to API response."""
        return AdjustUnitResponse(
            unit=UnitResponse.from_entity(result.unit),
            transaction=TransactionResponse.from_entity(result.transaction),
            delta=result.transaction.quantity,
        )
