"""SQLite storage implementations."""

from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_connection,
    get_pool,
    get_transaction,
    get_write_transaction,
)
from src.infrastructure.storage.sqlite.inventory_store import SQLiteInventoryStore

# Type alias for convenience
InventoryStore = SQLiteInventoryStore

# Aliases used by the application lifespan
get_connection_pool = get_pool
close_connection_pool = close_pool

# Singleton instance
_inventory_store: SQLiteInventoryStore | None = None


async def get_inventory_store() -> SQLiteInventoryStore:
    """Get singleton inventory store instance."""
    global _inventory_store
    if _inventory_store is None:
        _inventory_store = SQLiteInventoryStore()
    return _inventory_store


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    "get_connection",
    "get_transaction",
    "get_write_transaction",
    "get_connection_pool",
    "close_connection_pool",
    # Store
    "SQLiteInventoryStore",
    "InventoryStore",
    "get_inventory_store",
]
