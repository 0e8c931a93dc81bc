"""Allocation entities: match keys and computed check-out plans."""

from datetime import date, datetime

from pydantic import BaseModel, Field


class MatchKey(BaseModel):
    """
    Drug-matching criteria for a FEFO check-out.

    An NDC code wins when present. Otherwise the full
    (medication_name, strength, strength_unit) triple is required, which
    covers hand-entered medications that were never assigned an NDC.
    """

    ndc_id: str | None = None
    medication_name: str | None = None
    strength: float | None = None
    strength_unit: str | None = None

    @property
    def normalized_ndc(self) -> str | None:
        if self.ndc_id is None:
            return None
        return self.ndc_id.strip() or None

    @property
    def uses_ndc(self) -> bool:
        return self.normalized_ndc is not None

    @property
    def is_complete(self) -> bool:
        """True when the key can identify a drug."""
        if self.uses_ndc:
            return True
        return (
            bool(self.medication_name and self.medication_name.strip())
            and self.strength is not None
            and bool(self.strength_unit and self.strength_unit.strip())
        )


class AllocationEntry(BaseModel):
    """Quantity drawn from a single unit."""

    unit_id: str
    quantity_taken: float
    available_before: float  # unit's available quantity when the plan was read
    expiry_date: date
    created_at: datetime
    medication_name: str | None = None


class AllocationPlan(BaseModel):
    """Ordered draw list satisfying a requested quantity."""

    requested_quantity: float
    entries: list[AllocationEntry] = Field(default_factory=list)

    @property
    def total_quantity(self) -> float:
        return sum(e.quantity_taken for e in self.entries)

    @property
    def unit_ids(self) -> list[str]:
        return [e.unit_id for e in self.entries]
