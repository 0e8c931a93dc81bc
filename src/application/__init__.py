"""
Application layer - Use cases and DTOs.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services and storage

Use cases are the only entry point for API handlers that change stock.
"""

from src.application.dto import (
    AdjustUnitRequest,
    BatchCheckOutRequest,
    CheckInRequest,
    CheckOutResponse,
    CreateLotRequest,
    ErrorResponse,
    FEFOCheckOutRequest,
    HealthResponse,
    UnitCheckOutRequest,
)
from src.application.use_cases import (
    AdjustUnitUseCase,
    BatchCheckOutUseCase,
    CheckInUnitsUseCase,
    CheckOutFEFOUseCase,
    CheckOutUnitUseCase,
    GetDashboardStatsUseCase,
)

__all__ = [
    # Request DTOs
    "FEFOCheckOutRequest",
    "UnitCheckOutRequest",
    "BatchCheckOutRequest",
    "CheckInRequest",
    "CreateLotRequest",
    "AdjustUnitRequest",
    # Response DTOs
    "CheckOutResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "CheckOutFEFOUseCase",
    "CheckOutUnitUseCase",
    "BatchCheckOutUseCase",
    "CheckInUnitsUseCase",
    "AdjustUnitUseCase",
    "GetDashboardStatsUseCase",
]
