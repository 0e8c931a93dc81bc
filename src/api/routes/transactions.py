"""Transaction log endpoints."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import PageParams, get_inv_store
from src.application.dto.responses import TransactionListResponse, TransactionResponse
from src.core.entities.inventory import TransactionFilter, TransactionType
from src.core.interfaces import IInventoryStore

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    transaction_type: TransactionType | None = Query(default=None, alias="type"),
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    medication_name: str | None = Query(default=None, alias="medicationName"),
    unit_id: str | None = Query(default=None, alias="unitId"),
    page: PageParams = Depends(),
    store: IInventoryStore = Depends(get_inv_store),
) -> TransactionListResponse:
    """Browse the audit log, newest first."""
    filters = TransactionFilter(
        transaction_type=transaction_type,
        start_date=start_date,
        end_date=end_date,
        medication_name=medication_name,
        unit_id=unit_id,
    )
    transactions, total = await store.list_transactions(
        filters, limit=page.limit, offset=page.offset
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.from_entity(t) for t in transactions],
        total=total,
        limit=page.limit,
        offset=page.offset,
        has_more=page.offset + len(transactions) < total,
    )
