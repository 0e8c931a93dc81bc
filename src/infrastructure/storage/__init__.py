"""Storage infrastructure implementations."""

from src.infrastructure.storage.sqlite import (
    SQLiteInventoryStore,
    close_pool,
    get_connection,
    get_inventory_store,
    get_pool,
    get_transaction,
    get_write_transaction,
)

__all__ = [
    "SQLiteInventoryStore",
    "get_inventory_store",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_write_transaction",
]
