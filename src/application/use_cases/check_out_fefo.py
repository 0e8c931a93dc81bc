"""FEFO Check-Out Use Case: dispense a quantity across matching units."""

from dataclasses import dataclass

from src.application.dto.requests import FEFOCheckOutRequest
from src.application.dto.responses import CheckOutResponse, UnitUsedResponse
from src.config import get_logger
from src.core.entities.allocation import AllocationPlan
from src.core.entities.inventory import Transaction
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.fefo_allocator import (
    FEFOAllocator,
    select_candidates,
    validate_match_key,
    validate_quantity,
)

logger = get_logger(__name__)


@dataclass
class CheckOutResult:
    """Result of a committed check-out."""

    plan: AllocationPlan
    transactions: list[Transaction]


def build_check_out_response(
    result: CheckOutResult, total_items: int | None = None
) -> CheckOutResponse:
    """Convert a check-out result to the API response shared by all check-outs."""
    return CheckOutResponse(
        total_quantity_dispensed=result.plan.total_quantity,
        units_used=[
            UnitUsedResponse(
                unit_id=entry.unit_id,
                quantity_taken=entry.quantity_taken,
                expiry_date=entry.expiry_date,
                medication_name=entry.medication_name,
            )
            for entry in result.plan.entries
        ],
        transaction_ids=[t.id for t in result.transactions if t.id is not None],
        total_items=total_items,
    )


class CheckOutFEFOUseCase:
    """Dispense from the earliest-expiring matching units first."""

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

    async def execute(self, request: FEFOCheckOutRequest) -> CheckOutResult:
        """
        Execute FEFO check-out.

        Raises:
            InvalidRequestError: bad quantity or incomplete drug identity
            InsufficientStockError: matching stock cannot cover the request
            CommitConflictError: stock changed between planning and commit
        """
        match_key = request.match_key()

        # 1. Reject bad input before any stock is read
        validate_quantity(request.requested_quantity, "requested_quantity")
        validate_match_key(match_key)

        logger.info(
            "fefo_check_out_started",
            ndc_id=match_key.normalized_ndc,
            medication_name=match_key.medication_name,
            requested=request.requested_quantity,
            acting_user=request.acting_user,
        )

        store = await self._get_inventory_store()

        # 2. Read candidates and plan
        units = await store.find_units_by_match_key(match_key)
        candidates = select_candidates(units, match_key)
        plan = self._allocator.allocate(candidates, request.requested_quantity)

        # 3. Commit atomically
        transactions = await store.commit_check_out(
            plan,
            acting_user=request.acting_user,
            notes=request.notes,
            patient_name=request.patient_name,
            patient_reference_id=request.patient_reference_id,
        )

        logger.info(
            "fefo_check_out_complete",
            units_used=len(plan.entries),
            dispensed=plan.total_quantity,
        )

        return CheckOutResult(plan=plan, transactions=transactions)

    def to_response(self, result: CheckOutResult) -> CheckOutResponse:
        """Convert result to API response."""
        return build_check_out_response(result)
