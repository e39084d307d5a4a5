from pydantic import BaseModel, Field

from household_finance.transactions.models import Classification, GroupBy


class TransactionRecord(BaseModel):
    """A normalised ledger row as produced by the external ingester."""

    id: str
    date: str
    time: str | None = None
    description: str
    amount: float
    category: str | None = None
    classification: Classification | None = None
    merchant_normalised: str | None = None
    source: str = "manual"
    needs_review: bool = False


class TransactionFilter(BaseModel):
    category: str | None = None
    classification: Classification | None = None
    merchant: str | None = None
    min_amount: float | None = None
    max_amount: float | None = None
    start_date: str | None = None
    end_date: str | None = None
    needs_review: bool | None = None
    limit: int = Field(default=50, ge=1, le=200)


class SpendingSummaryParams(BaseModel):
    start_date: str
    end_date: str
    group_by: GroupBy = GroupBy.category


class IngestResult(BaseModel):
    total_received: int
    total_inserted: int
    total_skipped: int
