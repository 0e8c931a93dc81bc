"""Manual unit corrections and check-in unit construction."""

import math
import uuid
from datetime import date, datetime

from src.core.entities.inventory import InventoryUnit
from src.core.exceptions import InvalidRequestError
from src.core.services.fefo_allocator import QUANTITY_PRECISION, validate_quantity

# Units created by one check-in request
MAX_UNITS_PER_CHECK_IN = 500


def new_unit_id() -> str:
    """Identifier printed as the unit's QR code."""
    return uuid.uuid4().hex[:12].upper()


def build_check_in_units(
    drug_id: int,
    lot_id: int | None,
    unit_count: int,
    quantity_per_unit: float,
    expiry_date: date,
    manufacturer_lot_number: str | None = None,
    notes: str | None = None,
) -> list[InventoryUnit]:
    """Fresh units for a check-in; each starts fully available."""
    if not 1 <= unit_count <= MAX_UNITS_PER_CHECK_IN:
        raise InvalidRequestError(
            "unit_count", f"must be between 1 and {MAX_UNITS_PER_CHECK_IN}", unit_count
        )
    quantity_per_unit = validate_quantity(quantity_per_unit, "quantity_per_unit")

    now = datetime.utcnow()
    return [
        InventoryUnit(
            id=new_unit_id(),
            drug_id=drug_id,
            lot_id=lot_id,
            total_quantity=quantity_per_unit,
            available_quantity=quantity_per_unit,
            expiry_date=expiry_date,
            manufacturer_lot_number=manufacturer_lot_number,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        for _ in range(unit_count)
    ]


def apply_adjustment(
    unit: InventoryUnit,
    total_quantity: float | None = None,
    available_quantity: float | None = None,
    expiry_date: date | None = None,
    notes: str | None = None,
) -> tuple[InventoryUnit, float]:
    """
    Return the corrected unit and the change in available quantity.

    The input unit is left untouched. Corrections that would break
    0 <= available <= total are rejected.
    """
    new_total = unit.total_quantity if total_quantity is None else total_quantity
    new_available = (
        unit.available_quantity if available_quantity is None else available_quantity
    )

    for field, value in (
        ("total_quantity", new_total),
        ("available_quantity", new_available),
    ):
        if not math.isfinite(value):
            raise InvalidRequestError(field, "must be a finite number", value)
    new_total = round(new_total, QUANTITY_PRECISION)
    new_available = round(new_available, QUANTITY_PRECISION)

    if new_total < 0:
        raise InvalidRequestError("total_quantity", "must not be negative", new_total)
    if new_available < 0:
        raise InvalidRequestError(
            "available_quantity", "must not be negative", new_available
        )
    if new_available > new_total:
        raise InvalidRequestError(
            "available_quantity",
            f"must not exceed total_quantity ({new_total:g})",
            new_available,
        )

    updated = unit.model_copy(
        update={
            "total_quantity": new_total,
            "available_quantity": new_available,
            "expiry_date": expiry_date or unit.expiry_date,
            "notes": unit.notes if notes is None else notes,
            "updated_at": datetime.utcnow(),
        }
    )
    return updated, round(new_available - unit.available_quantity, QUANTITY_PRECISION)
