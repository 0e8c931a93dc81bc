"""API route modules."""

from src.api.routes.checkin import router as checkin_router
from src.api.routes.checkout import router as checkout_router
from src.api.routes.dashboard import router as dashboard_router
from src.api.routes.health import router as health_router
from src.api.routes.lots import router as lots_router
from src.api.routes.transactions import router as transactions_router
from src.api.routes.units import router as units_router

__all__ = [
    "health_router",
    "checkout_router",
    "checkin_router",
    "lots_router",
    "units_router",
    "transactions_router",
    "dashboard_router",
]
