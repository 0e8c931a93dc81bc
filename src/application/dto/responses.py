"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from src.application.dto.requests import CamelModel
from src.core.entities.inventory import InventoryUnit, Lot, Transaction


# --- Check-out ---


class UnitUsedResponse(CamelModel):
    """Quantity drawn from one unit during a check-out."""

    unit_id: str = Field(..., description="Unit ID (QR code)")
    quantity_taken: float = Field(..., gt=0, description="Quantity dispensed from the unit")
    expiry_date: date = Field(..., description="Unit expiry date")
    medication_name: str | None = Field(default=None, description="Medication name")


class CheckOutResponse(CamelModel):
    """Outcome of a committed check-out."""

    total_quantity_dispensed: float = Field(..., description="Sum over units used")
    units_used: list[UnitUsedResponse] = Field(
        default=[], description="Units drawn from, in allocation order"
    )
    transaction_ids: list[int] = Field(default=[], description="Created check_out records")
    total_items: int | None = Field(
        default=None, description="Distinct units in a cart check-out"
    )


# --- Units ---


class UnitResponse(CamelModel):
    """Inventory unit with its drug."""

    id: str
    drug_id: int
    lot_id: int | None = None
    medication_name: str | None = None
    generic_name: str | None = None
    strength: float | None = None
    strength_unit: str | None = None
    form: str | None = None
    ndc_id: str | None = None
    total_quantity: float
    available_quantity: float
    expiry_date: date
    is_expired: bool = False
    manufacturer_lot_number: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, unit: InventoryUnit) -> "UnitResponse":
        drug = unit.drug
        return cls(
            id=unit.id,
            drug_id=unit.drug_id,
            lot_id=unit.lot_id,
            medication_name=drug.medication_name if drug else None,
            generic_name=drug.generic_name if drug else None,
            strength=drug.strength if drug else None,
            strength_unit=drug.strength_unit if drug else None,
            form=drug.form if drug else None,
            ndc_id=drug.ndc_id if drug else None,
            total_quantity=unit.total_quantity,
            available_quantity=unit.available_quantity,
            expiry_date=unit.expiry_date,
            is_expired=unit.is_expired(),
            manufacturer_lot_number=unit.manufacturer_lot_number,
            notes=unit.notes,
            created_at=unit.created_at,
            updated_at=unit.updated_at,
        )


class UnitListResponse(CamelModel):
    """Units matching a search."""

    units: list[UnitResponse] = Field(default=[])
    total: int = Field(..., ge=0, description="Units matching the filter")
    limit: int
    offset: int
    has_more: bool


# --- Transactions ---


class TransactionResponse(CamelModel):
    """Audit log entry."""

    id: int
    unit_id: str
    transaction_type: str
    quantity: float
    acting_user: str
    notes: str | None = None
    patient_name: str | None = None
    patient_reference_id: str | None = None
    medication_name: str | None = None
    timestamp: datetime

    @classmethod
    def from_entity(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,  # type: ignore[arg-type]
            unit_id=transaction.unit_id,
            transaction_type=transaction.transaction_type.value,
            quantity=transaction.quantity,
            acting_user=transaction.acting_user,
            notes=transaction.notes,
            patient_name=transaction.patient_name,
            patient_reference_id=transaction.patient_reference_id,
            medication_name=transaction.medication_name,
            timestamp=transaction.timestamp,
        )


class TransactionListResponse(CamelModel):
    """Page of the transaction log."""

    transactions: list[TransactionResponse] = Field(default=[])
    total: int = Field(..., ge=0, description="Records matching the filter")
    limit: int
    offset: int
    has_more: bool


# --- Check-in / adjust ---


class CheckInResponse(CamelModel):
    """Units created by a check-in."""

    drug_id: int
    units: list[UnitResponse] = Field(default=[])
    transaction_ids: list[int] = Field(default=[])


class AdjustUnitResponse(CamelModel):
    """Corrected unit and its adjust record."""

    unit: UnitResponse
    transaction: TransactionResponse
    delta: float = Field(..., description="Change in available quantity")


# --- Lots ---


class LotResponse(CamelModel):
    """Lot details."""

    id: int
    lot_code: str
    source: str | None = None
    note: str | None = None
    location: str | None = None
    max_capacity: int | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, lot: Lot) -> "LotResponse":
        return cls(
            id=lot.id,  # type: ignore[arg-type]
            lot_code=lot.lot_code,
            source=lot.source,
            note=lot.note,
            location=lot.location,
            max_capacity=lot.max_capacity,
            created_at=lot.created_at,
        )


class LotListResponse(CamelModel):
    """Registered lots."""

    lots: list[LotResponse] = Field(default=[])
    total: int = Field(..., ge=0)


# --- Dashboard ---


class DashboardStatsResponse(CamelModel):
    """Dashboard counters."""

    total_units: int = Field(..., ge=0, description="Units with stock")
    units_expiring_soon: int = Field(..., ge=0, description="Stocked units expiring soon")
    recent_check_ins: int = Field(..., ge=0)
    recent_check_outs: int = Field(..., ge=0)
    low_stock_alerts: int = Field(..., ge=0, description="Drugs below the stock threshold")
    expiring_within_days: int = Field(..., ge=0)
    recent_window_days: int = Field(..., ge=0)


# --- Health / errors ---


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    database: ProviderHealthResponse | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. INSUFFICIENT_STOCK)
    - message: human-readable description
    - hint: suggested recovery action
    - details: structured context (e.g. max_fulfillable)
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    details: dict[str, Any] = Field(default={}, description="Structured error context")
    path: str | None = Field(default=None, description="Request path")
    timestamp: datetime = Field(default_factory=datetime.now)
