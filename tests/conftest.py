"""Pytest configuration and fixtures."""

from collections.abc import Callable
from datetime import date, datetime, timedelta

import pytest

from src.core.entities import Drug, InventoryUnit, MatchKey


@pytest.fixture
def amoxicillin() -> Drug:
    """Drug with an NDC."""
    return Drug(
        id=1,
        medication_name="Amoxicillin",
        strength=500,
        strength_unit="mg",
        form="capsule",
        ndc_id="0093-4155-73",
    )


@pytest.fixture
def ibuprofen() -> Drug:
    """Hand-entered drug without an NDC."""
    return Drug(
        id=2,
        medication_name="Ibuprofen",
        strength=200,
        strength_unit="mg",
        form="tablet",
    )


@pytest.fixture
def amoxicillin_key() -> MatchKey:
    return MatchKey(ndc_id="0093-4155-73")


@pytest.fixture
def make_unit(amoxicillin: Drug) -> Callable[..., InventoryUnit]:
    """Factory for units; received one minute apart unless created_at is given."""
    base = datetime(2023, 6, 1, 9, 0, 0)
    counter = {"n": 0}

    def _make(
        unit_id: str,
        available: float,
        expiry: date,
        total: float | None = None,
        created_at: datetime | None = None,
        drug: Drug | None = None,
    ) -> InventoryUnit:
        counter["n"] += 1
        drug = drug or amoxicillin
        return InventoryUnit(
            id=unit_id,
            drug_id=drug.id,
            total_quantity=total if total is not None else max(available, 1),
            available_quantity=available,
            expiry_date=expiry,
            created_at=created_at or base + timedelta(minutes=counter["n"]),
            drug=drug,
        )

    return _make
