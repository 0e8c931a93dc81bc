"""Data Transfer Objects for API layer.

Request DTOs: Validate and parse incoming API requests.
Response DTOs: Structure and serialize API responses.

These are the ONLY contracts between API handlers and use cases.
"""

from src.application.dto.requests import (
    AdjustUnitRequest,
    BatchCheckOutItem,
    BatchCheckOutRequest,
    CamelModel,
    CheckInRequest,
    CreateLotRequest,
    FEFOCheckOutRequest,
    UnitCheckOutRequest,
)
from src.application.dto.responses import (
    AdjustUnitResponse,
    CheckInResponse,
    CheckOutResponse,
    DashboardStatsResponse,
    ErrorResponse,
    HealthResponse,
    LotListResponse,
    LotResponse,
    ProviderHealthResponse,
    TransactionListResponse,
    TransactionResponse,
    UnitListResponse,
    UnitResponse,
    UnitUsedResponse,
)

__all__ = [
    # Requests
    "CamelModel",
    "FEFOCheckOutRequest",
    "UnitCheckOutRequest",
    "BatchCheckOutItem",
    "BatchCheckOutRequest",
    "CheckInRequest",
    "CreateLotRequest",
    "AdjustUnitRequest",
    # Responses
    "UnitUsedResponse",
    "CheckOutResponse",
    "UnitResponse",
    "UnitListResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "CheckInResponse",
    "AdjustUnitResponse",
    "LotResponse",
    "LotListResponse",
    "DashboardStatsResponse",
    "HealthResponse",
    "ProviderHealthResponse",
    "ErrorResponse",
]
