"""Abstract interface for inventory storage."""

from abc import ABC, abstractmethod
from datetime import date, datetime

from src.core.entities.allocation import AllocationPlan, MatchKey
from src.core.entities.inventory import (
    Drug,
    InventoryStats,
    InventoryUnit,
    Lot,
    Transaction,
    TransactionFilter,
    UnitFilter,
)


class IInventoryStore(ABC):
    """Interface for drug, lot, unit and transaction persistence."""

    # Drugs

    @abstractmethod
    async def create_drug(self, drug: Drug) -> Drug:
        """Create a new drug."""
        pass

    @abstractmethod
    async def get_drug(self, drug_id: int) -> Drug | None:
        """Get drug by ID."""
        pass

    @abstractmethod
    async def find_drug(self, match_key: MatchKey) -> Drug | None:
        """Find the drug identified by an NDC or name/strength triple."""
        pass

    # Lots

    @abstractmethod
    async def create_lot(self, lot: Lot) -> Lot:
        """Create a new lot."""
        pass

    @abstractmethod
    async def get_lot(self, lot_id: int) -> Lot | None:
        """Get lot by ID."""
        pass

    @abstractmethod
    async def list_lots(self, limit: int = 100, offset: int = 0) -> list[Lot]:
        """List lots, newest first."""
        pass

    # Units

    @abstractmethod
    async def get_unit(self, unit_id: str) -> InventoryUnit | None:
        """Get unit by ID with its drug joined."""
        pass

    @abstractmethod
    async def get_units(self, unit_ids: list[str]) -> list[InventoryUnit]:
        """Get several units by ID; missing IDs are skipped."""
        pass

    @abstractmethod
    async def search_units(
        self,
        filters: UnitFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[InventoryUnit], int]:
        """
        One page of units matching the filter, with the total match count.

        Default order is FEFO (earliest expiry, then oldest received).
        """
        pass

    @abstractmethod
    async def find_units_by_match_key(self, match_key: MatchKey) -> list[InventoryUnit]:
        """Units with stock whose drug matches the key. Read only."""
        pass

    @abstractmethod
    async def create_units(
        self,
        units: list[InventoryUnit],
        acting_user: str,
        notes: str | None = None,
        drug: Drug | None = None,
    ) -> tuple[list[InventoryUnit], list[Transaction]]:
        """
        Insert units and one check_in transaction each, atomically.

        A drug without an id is created inside the same transaction.
        """
        pass

    @abstractmethod
    async def adjust_unit(
        self,
        unit_id: str,
        acting_user: str,
        total_quantity: float | None = None,
        available_quantity: float | None = None,
        expiry_date: date | None = None,
        notes: str | None = None,
        reason: str | None = None,
    ) -> tuple[InventoryUnit, Transaction]:
        """Apply a manual correction and record an adjust transaction, atomically."""
        pass

    # Check-out

    @abstractmethod
    async def commit_check_out(
        self,
        plan: AllocationPlan,
        acting_user: str,
        notes: str | None = None,
        patient_name: str | None = None,
        patient_reference_id: str | None = None,
    ) -> list[Transaction]:
        """
        Apply an allocation plan all-or-nothing.

        Raises CommitConflictError if any unit no longer holds the planned
        quantity; nothing is written in that case.
        """
        pass

    # Reporting

    @abstractmethod
    async def list_transactions(
        self,
        filters: TransactionFilter | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """Transactions newest first, with the total count for the filter."""
        pass

    @abstractmethod
    async def get_stats(
        self,
        expiring_before: date,
        recent_since: datetime,
        low_stock_threshold: float,
    ) -> InventoryStats:
        """Dashboard counters."""
        pass
