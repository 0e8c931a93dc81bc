"""Check-in endpoint."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_check_in_use_case
from src.application.dto.requests import CheckInRequest
from src.application.dto.responses import CheckInResponse, ErrorResponse
from src.application.use_cases import CheckInUnitsUseCase

router = APIRouter(prefix="/api/checkin", tags=["checkin"])


@router.post(
    "",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def check_in(
    request: CheckInRequest,
    use_case: CheckInUnitsUseCase = Depends(get_check_in_use_case),
) -> CheckInResponse:
    """Receive units; each gets its own ID and a check_in record."""
    result = await use_case.execute(request)
    return use_case.to_response(result)
