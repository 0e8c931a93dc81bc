"""Unit Check-Out Use Case: dispense from one scanned unit."""

from src.application.dto.requests import UnitCheckOutRequest
from src.application.dto.responses import CheckOutResponse
from src.application.use_cases.check_out_fefo import (
    CheckOutResult,
    build_check_out_response,
)
from src.config import get_logger
from src.core.exceptions import UnitNotFoundError
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.fefo_allocator import (
    QUANTITY_PRECISION,
    FEFOAllocator,
    validate_quantity,
)

logger = get_logger(__name__)


class CheckOutUnitUseCase:
    """Dispense from a specific unit, ignoring FEFO order."""

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

    async def execute(self, request: UnitCheckOutRequest) -> CheckOutResult:
        """Execute specific-unit check-out."""
        validate_quantity(request.quantity, "quantity")

        logger.info(
            "unit_check_out_started",
            unit_id=request.unit_id,
            quantity=request.quantity,
            acting_user=request.acting_user,
        )

        store = await self._get_inventory_store()

        unit = await store.get_unit(request.unit_id)
        if unit is None:
            raise UnitNotFoundError(request.unit_id)

        # Other units of the same drug are never consulted here
        plan = self._allocator.allocate_unit(unit, request.quantity)

        transactions = await store.commit_check_out(
            plan,
            acting_user=request.acting_user,
            notes=request.notes,
            patient_name=request.patient_name,
            patient_reference_id=request.patient_reference_id,
        )

        logger.info(
            "unit_check_out_complete",
            unit_id=unit.id,
            remaining=round(unit.available_quantity - plan.total_quantity, QUANTITY_PRECISION),
        )

        return CheckOutResult(plan=plan, transactions=transactions)

    def to_response(self, result: CheckOutResult) -> CheckOutResponse:
        """Convert result to API response."""
        return build_check_out_response(result)
