"""Inventory domain entities."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, Field, model_validator


class TransactionType(str, Enum):
    """Kinds of audit records written against a unit."""

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    ADJUST = "adjust"


class Drug(BaseModel):
    """A medication identity that units are received under."""

    id: int | None = None
    medication_name: str
    generic_name: str | None = None
    strength: float | None = None
    strength_unit: str | None = None  # e.g. "mg", "mg/mL"
    form: str | None = None  # e.g. "tablet", "suspension"
    ndc_id: str | None = None  # National Drug Code
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def display_name(self) -> str:
        """Name with strength, e.g. 'Amoxicillin 500mg'."""
        if self.strength is None:
            return self.medication_name
        strength = f"{self.strength:g}{self.strength_unit or ''}"
        return f"{self.medication_name} {strength}"


class Lot(BaseModel):
    """A batch/location grouping under which units were received."""

    id: int | None = None
    lot_code: str
    source: str | None = None
    note: str | None = None
    location: str | None = None
    max_capacity: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class InventoryUnit(BaseModel):
    """One trackable container of medication with its own expiry."""

    id: str  # also the QR payload printed on the label
    drug_id: int  # FK → drugs.id
    lot_id: int | None = None  # FK → lots.id
    total_quantity: float
    available_quantity: float
    expiry_date: date
    manufacturer_lot_number: str | None = None
    notes: str | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Joined for display and matching; not persisted on the unit row
    drug: Drug | None = None

    @model_validator(mode="after")
    def check_quantities(self) -> "InventoryUnit":
        """Enforce 0 <= available_quantity <= total_quantity."""
        if self.total_quantity < 0:
            raise ValueError("total_quantity must not be negative")
        if self.available_quantity < 0:
            raise ValueError("available_quantity must not be negative")
        if self.available_quantity > self.total_quantity:
            raise ValueError("available_quantity must not exceed total_quantity")
        return self

    @property
    def is_exhausted(self) -> bool:
        return self.available_quantity <= 0

    def is_expired(self, on: date | None = None) -> bool:
        """True when the expiry date is before `on` (default today)."""
        return self.expiry_date < (on or date.today())


class Transaction(BaseModel):
    """Append-only audit record for a unit quantity change."""

    id: int | None = None
    unit_id: str  # FK → inventory_units.id
    transaction_type: TransactionType
    quantity: float  # signed delta for ADJUST, positive otherwise
    acting_user: str
    notes: str | None = None
    patient_name: str | None = None
    patient_reference_id: str | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    # Joined for the transaction log
    medication_name: str | None = None


class TransactionFilter(BaseModel):
    """Criteria for browsing the transaction log."""

    transaction_type: TransactionType | None = None
    start_date: date | None = None
    end_date: date | None = None  # inclusive
    medication_name: str | None = None  # substring, case-insensitive
    unit_id: str | None = None


class UnitSortField(str, Enum):
    """Columns the unit list can be sorted by."""

    MEDICATION_NAME = "medication_name"
    EXPIRY_DATE = "expiry_date"
    QUANTITY = "quantity"
    CREATED_DATE = "created_date"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class StockFilter(str, Enum):
    """Which units to list by remaining quantity."""

    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    ALL = "all"


class UnitFilter(BaseModel):
    """Criteria for the inventory unit list."""

    query: str | None = None  # name, generic name, NDC or unit ID
    lot_id: int | None = None
    location: str | None = None  # lot location substring, case-insensitive
    expiry_start: date | None = None
    expiry_end: date | None = None  # inclusive
    stock: StockFilter = StockFilter.IN_STOCK
    sort_by: UnitSortField | None = None  # None keeps FEFO order
    sort_order: SortOrder = SortOrder.ASC


class InventoryStats(BaseModel):
    """Dashboard counters."""

    total_units: int = 0
    units_expiring_soon: int = 0
    recent_check_ins: int = 0
    recent_check_outs: int = 0
    low_stock_alerts: int = 0
