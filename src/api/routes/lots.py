"""Lot endpoints."""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import PageParams, get_inv_store
from src.application.dto.requests import CreateLotRequest
from src.application.dto.responses import ErrorResponse, LotListResponse, LotResponse
from src.core.entities.inventory import Lot
from src.core.exceptions import LotNotFoundError
from src.core.interfaces import IInventoryStore

router = APIRouter(prefix="/api/lots", tags=["lots"])


@router.post("", response_model=LotResponse, status_code=status.HTTP_201_CREATED)
async def create_lot(
    request: CreateLotRequest,
    store: IInventoryStore = Depends(get_inv_store),
) -> LotResponse:
    """Register a lot."""
    lot = await store.create_lot(Lot(**request.model_dump()))
    return LotResponse.from_entity(lot)


@router.get("", response_model=LotListResponse)
async def list_lots(
    page: PageParams = Depends(),
    store: IInventoryStore = Depends(get_inv_store),
) -> LotListResponse:
    """List lots, newest first."""
    lots = await store.list_lots(limit=page.limit, offset=page.offset)
    return LotListResponse(
        lots=[LotResponse.from_entity(lot) for lot in lots],
        total=len(lots),
    )


@router.get(
    "/{lot_id}",
    response_model=LotResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_lot(
    lot_id: int,
    store: IInventoryStore = Depends(get_inv_store),
) -> LotResponse:
    """Get lot by ID."""
    lot = await store.get_lot(lot_id)
    if lot is None:
        raise LotNotFoundError(lot_id)
    return LotResponse.from_entity(lot)
