"""Batch Check-Out Use Case: commit a cart of scanned units at once."""

from src.application.dto.requests import BatchCheckOutRequest
from src.application.dto.responses import CheckOutResponse
from src.application.use_cases.check_out_fefo import (
    CheckOutResult,
    build_check_out_response,
)
from src.config import get_logger
from src.core.exceptions import InvalidRequestError, UnitNotFoundError
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.fefo_allocator import FEFOAllocator, validate_quantity

logger = get_logger(__name__)


class BatchCheckOutUseCase:
    """Check out several units in one all-or-nothing commit."""

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        allocator: FEFOAllocator | None = None,
    ):
        self._inventory_store = inventory_store
        self._allocator = allocator or FEFOAllocator()

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(self, request: BatchCheckOutRequest) -> CheckOutResult:
        """
        Execute cart check-out.

        Either every line is dispensed or none is.
        """
        if not request.items:
            raise InvalidRequestError("items", "at least one item is required")
        for index, item in enumerate(request.items):
            validate_quantity(item.quantity, f"items[{index}].quantity")

        logger.info(
            "batch_check_out_started",
            lines=len(request.items),
            acting_user=request.acting_user,
        )

        store = await self._get_inventory_store()

        unit_ids = list(dict.fromkeys(item.unit_id for item in request.items))
        units = {unit.id: unit for unit in await store.get_units(unit_ids)}
        for unit_id in unit_ids:
            if unit_id not in units:
                raise UnitNotFoundError(unit_id)

        plan = self._allocator.allocate_units(
            [(units[item.unit_id], item.quantity) for item in request.items]
        )

        transactions = await store.commit_check_out(
            plan,
            acting_user=request.acting_user,
            notes=request.notes,
            patient_name=request.patient_name,
            patient_reference_id=request.patient_reference_id,
        )

        logger.info(
            "batch_check_out_complete",
            units_used=len(plan.entries),
            dispensed=plan.total_quantity,
        )

        return CheckOutResult(plan=plan, transactions=transactions)

    def to_response(self, result: CheckOutResult) -> CheckOutResponse:
        """Convert result to API response."""
        return build_check_out_response(result, total_items=len(result.plan.entries))
