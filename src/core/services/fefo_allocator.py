"""
First-Expired-First-Out check-out allocation.

Pure service: computes which units to draw from and how much from each.
It never touches storage and never mutates the units it is given; the
resulting plan is applied by IInventoryStore.commit_check_out.

Expired units stay eligible. Ordering is the allocator's job; whether
expired stock may be dispensed is decided by the caller.
"""

import math
from collections.abc import Iterable, Sequence

from src.config import get_logger
from src.core.entities.allocation import AllocationEntry, AllocationPlan, MatchKey
from src.core.entities.inventory import Drug, InventoryUnit
from src.core.exceptions import InsufficientStockError, InvalidRequestError

logger = get_logger(__name__)

# Decimal places kept when subtracting fractional quantities
QUANTITY_PRECISION = 6


def _round_qty(value: float) -> float:
    return round(value, QUANTITY_PRECISION)


def _norm(text: str | None) -> str:
    return (text or "").strip().lower()


def validate_quantity(quantity: float, field: str = "quantity") -> float:
    """
    Reject quantities that cannot be dispensed, before any stock is read.

    NaN, infinities and values that round to zero or below are invalid.
    Returns the quantity rounded to QUANTITY_PRECISION.
    """
    if quantity is None or not math.isfinite(quantity) or _round_qty(quantity) <= 0:
        raise InvalidRequestError(
            field, "must be a finite number greater than zero", quantity
        )
    return _round_qty(quantity)


def validate_match_key(match_key: MatchKey) -> None:
    """Reject keys that carry neither an NDC nor the full name/strength triple."""
    if not match_key.is_complete:
        raise InvalidRequestError(
            "match_key",
            "provide ndc_id, or medication_name with strength and strength_unit",
            match_key.model_dump(exclude_none=True),
        )


def drug_matches(drug: Drug | None, match_key: MatchKey) -> bool:
    """Whether a drug satisfies the match key."""
    if drug is None:
        return False
    if match_key.uses_ndc:
        return (drug.ndc_id or "").strip() == match_key.normalized_ndc
    return (
        _norm(drug.medication_name) == _norm(match_key.medication_name)
        and drug.strength is not None
        and match_key.strength is not None
        and _round_qty(drug.strength) == _round_qty(match_key.strength)
        and _norm(drug.strength_unit) == _norm(match_key.strength_unit)
    )


def select_candidates(
    units: Iterable[InventoryUnit], match_key: MatchKey
) -> list[InventoryUnit]:
    """
    Units eligible for a FEFO draw.

    Keeps units whose drug matches the key and that still have stock.
    Exhausted units are skipped, not removed. No expiry filter is applied.
    """
    return [
        unit
        for unit in units
        if unit.available_quantity > 0 and drug_matches(unit.drug, match_key)
    ]


def fefo_order(units: Iterable[InventoryUnit]) -> list[InventoryUnit]:
    """Earliest expiry first; ties go to the oldest-received unit."""
    return sorted(units, key=lambda u: (u.expiry_date, u.created_at, u.id))


def _entry(unit: InventoryUnit, taken: float) -> AllocationEntry:
    return AllocationEntry(
        unit_id=unit.id,
        quantity_taken=taken,
        available_before=unit.available_quantity,
        expiry_date=unit.expiry_date,
        created_at=unit.created_at,
        medication_name=unit.drug.medication_name if unit.drug else None,
    )


class FEFOAllocator:
    """
    Builds check-out plans.

    Three entry points share the same plan shape:
    - allocate: greedy FEFO draw across matching units
    - allocate_unit: a single scanned unit, bounds check only
    - allocate_units: a cart of scanned units, each bounds-checked
    """

    def allocate(
        self,
        candidates: Sequence[InventoryUnit],
        requested_quantity: float,
    ) -> AllocationPlan:
        """
        Draw requested_quantity from candidates, earliest expiry first.

        Raises:
            InvalidRequestError: requested_quantity is not a finite positive number.
            InsufficientStockError: candidates cannot cover the request.
                Nothing is planned in that case; max_fulfillable tells the
                caller how much could be dispensed.
        """
        requested = validate_quantity(requested_quantity, "requested_quantity")

        eligible = [u for u in candidates if u.available_quantity > 0]
        max_fulfillable = _round_qty(sum(u.available_quantity for u in eligible))
        if max_fulfillable < requested:
            raise InsufficientStockError(
                requested=requested,
                max_fulfillable=max_fulfillable,
                scope="matching",
            )

        plan = AllocationPlan(requested_quantity=requested)
        remaining = requested
        for unit in fefo_order(eligible):
            if remaining <= 0:
                break
            taken = _round_qty(min(remaining, unit.available_quantity))
            plan.entries.append(_entry(unit, taken))
            remaining = _round_qty(remaining - taken)

        logger.debug(
            "fefo_plan_computed",
            requested=requested,
            units=len(plan.entries),
            candidates=len(eligible),
        )
        return plan

    def allocate_unit(
        self,
        unit: InventoryUnit,
        requested_quantity: float,
    ) -> AllocationPlan:
        """
        Plan a check-out from one specific unit.

        Other units are never consulted, so a shortfall here is reported
        with scope "unit" even if matching stock exists elsewhere.
        """
        requested = validate_quantity(requested_quantity, "requested_quantity")

        if requested > _round_qty(unit.available_quantity):
            raise InsufficientStockError(
                requested=requested,
                max_fulfillable=unit.available_quantity,
                scope="unit",
                unit_id=unit.id,
            )

        return AllocationPlan(
            requested_quantity=requested,
            entries=[_entry(unit, requested)],
        )

    def allocate_units(
        self,
        lines: Sequence[tuple[InventoryUnit, float]],
    ) -> AllocationPlan:
        """
        Plan a cart check-out of several scanned units.

        Lines for the same unit are merged before the bounds check so a
        cart cannot overdraw a unit by listing it twice.
        """
        if not lines:
            raise InvalidRequestError("items", "at least one item is required")

        merged: dict[str, tuple[InventoryUnit, float]] = {}
        for unit, quantity in lines:
            quantity = validate_quantity(quantity, f"items[{unit.id}].quantity")
            if unit.id in merged:
                merged[unit.id] = (unit, _round_qty(merged[unit.id][1] + quantity))
            else:
                merged[unit.id] = (unit, quantity)

        entries = []
        for unit, quantity in merged.values():
            if quantity > _round_qty(unit.available_quantity):
                raise InsufficientStockError(
                    requested=quantity,
                    max_fulfillable=unit.available_quantity,
                    scope="unit",
                    unit_id=unit.id,
                )
            entries.append(_entry(unit, quantity))

        return AllocationPlan(
            requested_quantity=_round_qty(sum(e.quantity_taken for e in entries)),
            entries=entries,
        )
