"""Inventory unit endpoints."""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import (
    PageParams,
    get_adjust_unit_use_case,
    get_app_settings,
    get_inv_store,
)
from src.application.dto.requests import AdjustUnitRequest
from src.application.dto.responses import (
    AdjustUnitResponse,
    ErrorResponse,
    UnitListResponse,
    UnitResponse,
)
from src.application.use_cases import AdjustUnitUseCase
from src.config import Settings
from src.core.entities.inventory import SortOrder, StockFilter, UnitFilter, UnitSortField
from src.core.exceptions import UnitNotFoundError
from src.core.interfaces import IInventoryStore

router = APIRouter(prefix="/api/units", tags=["units"])


@router.get("", response_model=UnitListResponse)
async def search_units(
    query: str | None = Query(default=None, description="Name, generic name, NDC or unit ID"),
    lot_id: int | None = Query(default=None, alias="lotId"),
    location: str | None = Query(default=None, description="Lot location substring"),
    expiry_start: date | None = Query(default=None, alias="expiryStart"),
    expiry_end: date | None = Query(default=None, alias="expiryEnd"),
    expiring_soon: bool = Query(
        default=False,
        alias="expiringSoon",
        description="Only units expiring within the dashboard window",
    ),
    stock: StockFilter = Query(default=StockFilter.IN_STOCK),
    sort_by: UnitSortField | None = Query(
        default=None, alias="sortBy", description="Omit for FEFO order"
    ),
    sort_order: SortOrder = Query(default=SortOrder.ASC, alias="sortOrder"),
    page: PageParams = Depends(),
    settings: Settings = Depends(get_app_settings),
    store: IInventoryStore = Depends(get_inv_store),
) -> UnitListResponse:
    """Browse units; earliest expiry first unless sortBy is given."""
    if expiring_soon:
        horizon = date.today() + timedelta(days=settings.inventory.expiring_soon_days)
        expiry_end = min(expiry_end, horizon) if expiry_end else horizon

    filters = UnitFilter(
        query=query,
        lot_id=lot_id,
        location=location,
        expiry_start=expiry_start,
        expiry_end=expiry_end,
        stock=stock,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    units, total = await store.search_units(filters, limit=page.limit, offset=page.offset)
    return UnitListResponse(
        units=[UnitResponse.from_entity(u) for u in units],
        total=total,
        limit=page.limit,
        offset=page.offset,
        has_more=page.offset + len(units) < total,
    )


@router.get(
    "/{unit_id}",
    response_model=UnitResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_unit(
    unit_id: str,
    store: IInventoryStore = Depends(get_inv_store),
) -> UnitResponse:
    """Get a unit by its ID (QR code)."""
    unit = await store.get_unit(unit_id)
    if unit is None:
        raise UnitNotFoundError(unit_id)
    return UnitResponse.from_entity(unit)


@router.patch(
    "/{unit_id}",
    response_model=AdjustUnitResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def adjust_unit(
    unit_id: str,
    request: AdjustUnitRequest,
    use_case: AdjustUnitUseCase = Depends(get_adjust_unit_use_case),
) -> AdjustUnitResponse:
    """Correct a unit's quantities, expiry or notes."""
    result = await use_case.execute(unit_id, request)
    return use_case.to_response(result)
