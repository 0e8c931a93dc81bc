"""Use cases - application-specific business logic.

Each use case orchestrates core services and storage ports
for a single operation.
"""

from src.application.use_cases.adjust_unit import AdjustUnitResult, AdjustUnitUseCase
from src.application.use_cases.batch_check_out import BatchCheckOutUseCase
from src.application.use_cases.check_in_units import CheckInResult, CheckInUnitsUseCase
from src.application.use_cases.check_out_fefo import (
    CheckOutFEFOUseCase,
    CheckOutResult,
    build_check_out_response,
)
from src.application.use_cases.check_out_unit import CheckOutUnitUseCase
from src.application.use_cases.get_dashboard_stats import GetDashboardStatsUseCase

__all__ = [
    # Check-out
    "CheckOutFEFOUseCase",
    "CheckOutUnitUseCase",
    "BatchCheckOutUseCase",
    "CheckOutResult",
    "build_check_out_response",
    # Stock changes
    "CheckInUnitsUseCase",
    "CheckInResult",
    "AdjustUnitUseCase",
    "AdjustUnitResult",
    # Reporting
    "GetDashboardStatsUseCase",
]
