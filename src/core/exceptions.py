"""
Domain exceptions for the MedTrack inventory service.

Every error carries a machine-readable code and a details dict so callers can
act on it (e.g. offer a reduced quantity after InsufficientStockError).
"""

from typing import Any


class MedTrackError(Exception):
    """Base exception for all MedTrack errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(MedTrackError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidRequestError(ValidationError):
    """Request rejected before any stock was read."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(field, message, value)
        self.code = "INVALID_REQUEST"


# Lookup Exceptions
class NotFoundError(MedTrackError):
    """Base exception for missing records."""

    pass


class UnitNotFoundError(NotFoundError):
    """Inventory unit not found."""

    def __init__(self, unit_id: str):
        super().__init__(
            f"Unit not found: {unit_id}",
            code="UNIT_NOT_FOUND",
            details={"unit_id": unit_id},
        )


class LotNotFoundError(NotFoundError):
    """Lot not found."""

    def __init__(self, lot_id: int):
        super().__init__(
            f"Lot not found: {lot_id}",
            code="LOT_NOT_FOUND",
            details={"lot_id": lot_id},
        )


class DrugNotFoundError(NotFoundError):
    """Drug not found."""

    def __init__(self, drug_id: int):
        super().__init__(
            f"Drug not found: {drug_id}",
            code="DRUG_NOT_FOUND",
            details={"drug_id": drug_id},
        )


# Stock Exceptions
class StockError(MedTrackError):
    """Base exception for check-out failures."""

    pass


class InsufficientStockError(StockError):
    """
    Requested quantity exceeds what can be dispensed.

    scope is "unit" for a specific-unit check-out and "matching" when all
    units matching the drug were considered.
    """

    def __init__(
        self,
        requested: float,
        max_fulfillable: float,
        scope: str = "matching",
        unit_id: str | None = None,
    ):
        if scope == "unit":
            message = (
                f"Requested {requested:g} exceeds this unit's stock "
                f"({max_fulfillable:g} available)"
            )
        else:
            message = (
                f"Requested {requested:g} exceeds all matching stock "
                f"({max_fulfillable:g} available)"
            )
        details: dict[str, Any] = {
            "requested": requested,
            "max_fulfillable": max_fulfillable,
            "scope": scope,
        }
        if unit_id is not None:
            details["unit_id"] = unit_id
        super().__init__(message, code="INSUFFICIENT_STOCK", details=details)
        self.requested = requested
        self.max_fulfillable = max_fulfillable
        self.scope = scope


class CommitConflictError(StockError):
    """A concurrent check-out changed a unit after the plan was computed."""

    def __init__(self, unit_id: str, quantity_taken: float):
        super().__init__(
            f"Unit {unit_id} changed since allocation; re-run the check-out",
            code="COMMIT_CONFLICT",
            details={
                "unit_id": unit_id,
                "quantity_taken": quantity_taken,
                "retryable": True,
            },
        )
        self.unit_id = unit_id


# Storage Exceptions
class StorageError(MedTrackError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )


class MigrationError(StorageError):
    """Schema migration could not be applied or no longer matches the database."""

    def __init__(self, version: str, message: str):
        super().__init__(
            f"Migration v{version}: {message}",
            code="MIGRATION_ERROR",
            details={"version": version},
        )
        self.version = version


class ConfigurationError(MedTrackError):
    """Configuration error."""

    pass
