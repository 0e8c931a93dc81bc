"""
Dependency injection container for FastAPI.

Provides store and use case instances to route handlers.
"""

from functools import lru_cache

from fastapi import Depends, Query

from src.application.use_cases import (
    AdjustUnitUseCase,
    BatchCheckOutUseCase,
    CheckInUnitsUseCase,
    CheckOutFEFOUseCase,
    CheckOutUnitUseCase,
    GetDashboardStatsUseCase,
)
from src.config import Settings, get_settings
from src.core.interfaces import IInventoryStore
from src.infrastructure.storage.sqlite import get_inventory_store


@lru_cache
def get_app_settings() -> Settings:
    """Get cached application settings."""
    return get_settings()


# Store dependencies
async def get_inv_store() -> IInventoryStore:
    """Get inventory store."""
    return await get_inventory_store()


# Use case dependencies
def get_fefo_check_out_use_case(
    store: IInventoryStore = Depends(get_inv_store),
) -> CheckOutFEFOUseCase:
    """Get FEFO check-out use case."""
    return CheckOutFEFOUseCase(inventory_store=store)


def get_unit_check_out_use_case(
    store: IInventoryStore = Depends(get_inv_store),
) -> CheckOutUnitUseCase:
    """Get specific-unit check-out use case."""
    return CheckOutUnitUseCase(inventory_store=store)


def get_batch_check_out_use_case(
    store: IInventoryStore = Depends(get_inv_store),
) -> BatchCheckOutUseCase:
    """Get cart check-out use case."""
    return BatchCheckOutUseCase(inventory_store=store)


def get_check_in_use_case(
    store: IInventoryStore = Depends(get_inv_store),
) -> CheckInUnitsUseCase:
    """Get check-in use case."""
    return CheckInUnitsUseCase(inventory_store=store)


def get_adjust_unit_use_case(
    store: IInventoryStore = Depends(get_inv_store),
) -> AdjustUnitUseCase:
    """Get unit adjustment use case."""
    return AdjustUnitUseCase(inventory_store=store)


def get_dashboard_stats_use_case(
    store: IInventoryStore = Depends(get_inv_store),
    settings: Settings = Depends(get_app_settings),
) -> GetDashboardStatsUseCase:
    """Get dashboard stats use case."""
    return GetDashboardStatsUseCase(inventory_store=store, settings=settings)


# Paging
class PageParams:
    """limit/offset query parameters clamped to the configured page size."""

    def __init__(
        self,
        limit: int | None = Query(default=None, ge=1, description="Page size"),
        offset: int = Query(default=0, ge=0, description="Records to skip"),
        settings: Settings = Depends(get_app_settings),
    ):
        cfg = settings.inventory
        self.limit = min(limit or cfg.default_page_size, cfg.max_page_size)
        self.offset = offset
