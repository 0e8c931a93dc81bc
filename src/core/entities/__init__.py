"""Core domain entities."""

from src.core.entities.allocation import AllocationEntry, AllocationPlan, MatchKey
from src.core.entities.inventory import (
    Drug,
    InventoryStats,
    InventoryUnit,
    Lot,
    SortOrder,
    StockFilter,
    Transaction,
    TransactionFilter,
    TransactionType,
    UnitFilter,
    UnitSortField,
)

__all__ = [
    # Inventory
    "Drug",
    "Lot",
    "InventoryUnit",
    "Transaction",
    "TransactionType",
    "TransactionFilter",
    "UnitFilter",
    "UnitSortField",
    "SortOrder",
    "StockFilter",
    "InventoryStats",
    # Allocation
    "MatchKey",
    "AllocationEntry",
    "AllocationPlan",
]
