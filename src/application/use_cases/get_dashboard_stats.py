"""Dashboard Stats Use Case."""

from datetime import date, datetime, timedelta

from src.application.dto.responses import DashboardStatsResponse
from src.config import Settings, get_logger, get_settings
from src.core.entities.inventory import InventoryStats
from src.core.interfaces.inventory_store import IInventoryStore

logger = get_logger(__name__)


class GetDashboardStatsUseCase:
    """Compute the dashboard counters from configured windows."""

    def __init__(
        self,
        inventory_store: IInventoryStore | None = None,
        settings: Settings | None = None,
    ):
        self._inventory_store = inventory_store
        self._settings = settings or get_settings()

    async def _get_inventory_store(self) -> IInventoryStore:
        if self._inventory_store is None:
            from src.infrastructure.storage.sqlite import get_inventory_store

            self._inventory_store = await get_inventory_store()
        return self._inventory_store

    async def execute(self, today: date | None = None) -> InventoryStats:
        """Execute stats query; `today` is injectable for tests."""
        cfg = self._settings.inventory
        today = today or date.today()
        store = await self._get_inventory_store()

        stats = await store.get_stats(
            expiring_before=today + timedelta(days=cfg.expiring_soon_days),
            recent_since=datetime.utcnow() - timedelta(days=cfg.recent_window_days),
            low_stock_threshold=cfg.low_stock_threshold,
        )
        logger.debug("dashboard_stats_computed", **stats.model_dump())
        return stats

    def to_response(self, stats: InventoryStats) -> DashboardStatsResponse:
        """Convert result to API response."""
        cfg = self._settings.inventory
        return DashboardStatsResponse(
            total_units=stats.total_units,
            units_expiring_soon=stats.units_expiring_soon,
            recent_check_ins=stats.recent_check_ins,
            recent_check_outs=stats.recent_check_outs,
            low_stock_alerts=stats.low_stock_alerts,
            expiring_within_days=cfg.expiring_soon_days,
            recent_window_days=cfg.recent_window_days,
        )
