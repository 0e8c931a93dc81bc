"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/exceptions.py

NO infrastructure imports.
"""

from src.core.services.fefo_allocator import (
    FEFOAllocator,
    drug_matches,
    fefo_order,
    select_candidates,
    validate_match_key,
    validate_quantity,
)
from src.core.services.unit_adjustment import (
    apply_adjustment,
    build_check_in_units,
    new_unit_id,
)

__all__ = [
    # FEFO allocation
    "FEFOAllocator",
    "select_candidates",
    "fefo_order",
    "drug_matches",
    "validate_quantity",
    "validate_match_key",
    # Unit maintenance
    "apply_adjustment",
    "build_check_in_units",
    "new_unit_id",
]
