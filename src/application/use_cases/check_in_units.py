"""Check-In Use Case: receive units of a medication into a lot."""

from dataclasses import dataclass

from src.application.dto.requests import CheckInRequest
from src.application.dto.responses import CheckInResponse, UnitResponse
from src.config import get_logger
from src.core.entities.inventory import Drug, InventoryUnit, Transaction
from src.core.exceptions import LotNotFoundError
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.unit_adjustment import build_check_in_units

logger = get_logger(__name__)


@dataclass
class CheckInResult:
    """Result of a check-in."""

    drug: Drug
    units: list[InventoryUnit]
    transactions: list[Transaction]


class CheckInUnitsUseCase:
    """Create fully available units plus a check_in record for each."""

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

    async def _resolve_drug(self, store: IInventoryStore, request: CheckInRequest) -> Drug:
        """
        The drug matching the request, or an unsaved one.

        An unsaved drug (id None) is inserted by create_units together with
        the units.
        """
        match_key = request.match_key()
        if match_key.is_complete:
            drug = await store.find_drug(match_key)
            if drug is not None:
                return drug

        return Drug(
            medication_name=request.medication_name.strip(),
            generic_name=request.generic_name,
            strength=request.strength,
            strength_unit=request.strength_unit,
            form=request.form,
            ndc_id=match_key.normalized_ndc,
        )

    async def execute(self, request: CheckInRequest) -> CheckInResult:
        """Execute check-in."""
        logger.info(
            "check_in_started",
            medication_name=request.medication_name,
            unit_count=request.unit_count,
            quantity_per_unit=request.quantity_per_unit,
        )

        store = await self._get_inventory_store()

        # 1. Lot must exist when given
        if request.lot_id is not None and await store.get_lot(request.lot_id) is None:
            raise LotNotFoundError(request.lot_id)

        # 2. Validate counts before touching the drug table
        drafts = build_check_in_units(
            drug_id=0,
            lot_id=request.lot_id,
            unit_count=request.unit_count,
            quantity_per_unit=request.quantity_per_unit,
            expiry_date=request.expiry_date,
            manufacturer_lot_number=request.manufacturer_lot_number,
            notes=request.notes,
        )

        # 3. Resolve drug; a new one is written in the units' transaction
        drug = await self._resolve_drug(store, request)
        units, transactions = await store.create_units(
            drafts,
            acting_user=request.acting_user,
            notes=request.notes,
            drug=drug,
        )

        logger.info(
            "check_in_complete",
            drug_id=drug.id,
            unit_ids=[u.id for u in units],
        )

        return CheckInResult(drug=drug, units=units, transactions=transactions)

    def to_response(self, result: CheckInResult) -> CheckInResponse:
        """Convert result to API response."""
        return CheckInResponse(
            drug_id=result.drug.id,  # type: ignore[arg-type]
            units=[UnitResponse.from_entity(u) for u in result.units],
            transaction_ids=[t.id for t in result.transactions if t.id is not None],
        )
