"""Dashboard endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_dashboard_stats_use_case
from src.application.dto.responses import DashboardStatsResponse
from src.application.use_cases import GetDashboardStatsUseCase

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    use_case: GetDashboardStatsUseCase = Depends(get_dashboard_stats_use_case),
) -> DashboardStatsResponse:
    """Stock, expiry and activity counters."""
    stats = await use_case.execute()
    return use_case.to_response(stats)
