from typing import Annotated

from fastapi import APIRouter, Query

from household_finance.dependencies import CurrentUser, LedgerServiceDep, QueryServiceDep
from household_finance.transactions.models import Classification
from household_finance.transactions.schemas import (
    IngestResult,
    SpendingSummaryParams,
    TransactionFilter,
    TransactionRecord,
)

router = APIRouter()


@router.post("/", status_code=201, response_model=IngestResult)
async def ingest_transactions(
    records: list[TransactionRecord],
    service: LedgerServiceDep,
    user_id: CurrentUser,
) -> IngestResult:
    """Store normalised records; ids already on file are skipped."""
    return await service.ingest(user_id, records)


@router.get("/")
async def list_transactions(
    service: QueryServiceDep,
    user_id: CurrentUser,
    start_date: str | None = None,
    end_date: str | None = None,
    category: str | None = None,
    classification: Classification | None = None,
    merchant: str | None = None,
    min_amount: float | None = None,
    max_amount: float | None = None,
    needs_review: bool | None = None,
    limit: int = Query(default=50, ge=1, le=200),
) -> dict:
    filters = TransactionFilter(
        start_date=start_date,
        end_date=end_date,
        category=category,
        classification=classification,
        merchant=merchant,
        min_amount=min_amount,
        max_amount=max_amount,
        needs_review=needs_review,
        limit=limit,
    )
    return await service.query_transactions(user_id, filters)


@router.get("/summary")
async def get_summary(
    params: Annotated[SpendingSummaryParams, Query()],
    service: QueryServiceDep,
    user_id: CurrentUser,
) -> dict:
    return await service.spending_summary(
        user_id, params.start_date, params.end_date, params.group_by
    )


@router.get("/recent")
async def get_recent_activity(
    service: QueryServiceDep,
    user_id: CurrentUser,
    days: int = Query(default=30, ge=1, le=366),
) -> dict:
    return await service.recent_activity(user_id, days)
