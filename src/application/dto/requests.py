"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.

Bodies arrive in camelCase (``unitId``, ``requestedQuantity``); snake_case
names are accepted too.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.core.entities.allocation import MatchKey
from src.core.services.unit_adjustment import MAX_UNITS_PER_CHECK_IN


class CamelModel(BaseModel):
    """Base for DTOs exchanged in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckOutContext(CamelModel):
    """Who dispensed, and to whom."""

    acting_user: str = Field(
        ...,
        min_length=1,
        description="User performing the check-out",
        examples=["nurse.jones"],
    )
    notes: str | None = Field(default=None, description="Free-text note")
    patient_name: str | None = Field(default=None, description="Patient name")
    patient_reference_id: str | None = Field(
        default=None,
        description="Clinic patient reference",
        examples=["PT-00421"],
    )


class FEFOCheckOutRequest(CheckOutContext):
    """Request for a First-Expired-First-Out check-out.

    Identify the drug by NDC, or by name with strength and unit.
    """

    ndc_id: str | None = Field(
        default=None,
        description="National Drug Code; takes precedence when present",
        examples=["0093-4155-73"],
    )
    medication_name: str | None = Field(
        default=None,
        description="Medication name (used when no NDC is given)",
        examples=["Amoxicillin"],
    )
    strength: float | None = Field(default=None, description="Strength value", examples=[500])
    strength_unit: str | None = Field(
        default=None, description="Strength unit", examples=["mg"]
    )
    requested_quantity: float = Field(
        ...,
        description="Quantity to dispense across matching units",
        examples=[12],
    )

    def match_key(self) -> MatchKey:
        return MatchKey(
            ndc_id=self.ndc_id,
            medication_name=self.medication_name,
            strength=self.strength,
            strength_unit=self.strength_unit,
        )


class UnitCheckOutRequest(CheckOutContext):
    """Request for a check-out from one scanned unit."""

    unit_id: str = Field(
        ...,
        min_length=1,
        description="Unit ID (QR code)",
        examples=["3F9A1C0B7D2E"],
    )
    quantity: float = Field(..., description="Quantity to dispense", examples=[5])


class BatchCheckOutItem(CamelModel):
    """One cart line."""

    unit_id: str = Field(..., min_length=1, description="Unit ID (QR code)")
    quantity: float = Field(..., description="Quantity to dispense from this unit")


class BatchCheckOutRequest(CheckOutContext):
    """Request for a cart check-out committed as one operation."""

    items: list[BatchCheckOutItem] = Field(
        default_factory=list,
        description="Cart lines; the same unit may appear more than once",
    )


class CheckInRequest(CamelModel):
    """Request to receive units of a medication.

    The drug is looked up by NDC (or name/strength) and created when new.
    """

    lot_id: int | None = Field(default=None, description="Lot the units belong to")
    medication_name: str = Field(
        ..., min_length=1, description="Medication name", examples=["Amoxicillin"]
    )
    generic_name: str | None = Field(default=None, description="Generic name")
    strength: float | None = Field(default=None, description="Strength value")
    strength_unit: str | None = Field(default=None, description="Strength unit")
    form: str | None = Field(default=None, description="Dosage form", examples=["capsule"])
    ndc_id: str | None = Field(default=None, description="National Drug Code")
    unit_count: int = Field(
        default=1,
        le=MAX_UNITS_PER_CHECK_IN,
        description="Number of identical units (bottles, boxes) received",
    )
    quantity_per_unit: float = Field(..., description="Quantity held by each unit")
    expiry_date: date = Field(..., description="Expiry date printed on the units")
    manufacturer_lot_number: str | None = Field(
        default=None, description="Manufacturer lot number"
    )
    acting_user: str = Field(..., min_length=1, description="User receiving stock")
    notes: str | None = Field(default=None, description="Free-text note")

    def match_key(self) -> MatchKey:
        return MatchKey(
            ndc_id=self.ndc_id,
            medication_name=self.medication_name,
            strength=self.strength,
            strength_unit=self.strength_unit,
        )


class CreateLotRequest(CamelModel):
    """Request to register a lot."""

    lot_code: str = Field(
        ..., min_length=1, description="Lot code", examples=["DONATION-2024-03"]
    )
    source: str | None = Field(default=None, description="Where the stock came from")
    note: str | None = Field(default=None, description="Free-text note")
    location: str | None = Field(default=None, description="Storage location")
    max_capacity: int | None = Field(default=None, ge=0, description="Capacity in units")


class AdjustUnitRequest(CamelModel):
    """Request for a manual unit correction.

    Omitted fields keep their current values.
    """

    total_quantity: float | None = Field(default=None, description="Corrected total")
    available_quantity: float | None = Field(
        default=None, description="Corrected available quantity"
    )
    expiry_date: date | None = Field(default=None, description="Corrected expiry date")
    notes: str | None = Field(default=None, description="Replacement unit notes")
    reason: str | None = Field(
        default=None,
        description="Why the correction was made; stored on the adjust transaction",
        examples=["Recount after spill"],
    )
    acting_user: str = Field(..., min_length=1, description="User making the correction")
