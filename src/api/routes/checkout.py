"""Check-out endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import (
    get_batch_check_out_use_case,
    get_fefo_check_out_use_case,
    get_unit_check_out_use_case,
)
from src.application.dto.requests import (
    BatchCheckOutRequest,
    FEFOCheckOutRequest,
    UnitCheckOutRequest,
)
from src.application.dto.responses import CheckOutResponse, ErrorResponse
from src.application.use_cases import (
    BatchCheckOutUseCase,
    CheckOutFEFOUseCase,
    CheckOutUnitUseCase,
)

router = APIRouter(prefix="/api/checkout", tags=["checkout"])

CHECK_OUT_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


@router.post("/fefo", response_model=CheckOutResponse, responses=CHECK_OUT_ERRORS)
async def check_out_fefo(
    request: FEFOCheckOutRequest,
    use_case: CheckOutFEFOUseCase = Depends(get_fefo_check_out_use_case),
) -> CheckOutResponse:
    """
    Dispense a quantity across matching units, earliest expiry first.

    A 409 INSUFFICIENT_STOCK response carries details.max_fulfillable.
    """
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/unit", response_model=CheckOutResponse, responses=CHECK_OUT_ERRORS)
async def check_out_unit(
    request: UnitCheckOutRequest,
    use_case: CheckOutUnitUseCase = Depends(get_unit_check_out_use_case),
) -> CheckOutResponse:
    """Dispense from one scanned unit."""
    result = await use_case.execute(request)
    return use_case.to_response(result)


@router.post("/batch", response_model=CheckOutResponse, responses=CHECK_OUT_ERRORS)
async def check_out_batch(
    request: BatchCheckOutRequest,
    use_case: BatchCheckOutUseCase = Depends(get_batch_check_out_use_case),
) -> CheckOutResponse:
    """Dispense a cart of scanned units in one all-or-nothing commit."""
    result = await use_case.execute(request)
    return use_case.to_response(result)
