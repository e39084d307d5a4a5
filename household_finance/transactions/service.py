from datetime import date, timedelta

import aiosqlite
import structlog

from household_finance import clock
from household_finance.exceptions import NotFoundError, ValidationError
from household_finance.transactions.aggregations import (
    summarize_query,
    summarize_recent_activity,
    summarize_spending,
)
from household_finance.transactions.models import Classification, GroupBy
from household_finance.transactions.repository import TransactionRepository
from household_finance.transactions.schemas import (
    IngestResult,
    TransactionFilter,
    TransactionRecord,
)

logger = structlog.get_logger()

_STORE_ERROR = "Transaction data is unavailable right now."


class TransactionQueryService:
    """Read-only queries over one user's ledger.

    Store failures come back as ``{"error": ...}`` so an agent can hand them to
    the model as a tool result.
    """

    def __init__(self, repo: TransactionRepository) -> None:
        self._repo = repo

    async def query_transactions(self, user_id: str, filters: TransactionFilter) -> dict:
        try:
            rows = await self._repo.list_filtered(user_id, filters)
        except aiosqlite.Error as exc:
            logger.error("query_transactions_failed", user_id=user_id, error=str(exc))
            return {"error": _STORE_ERROR}

        transactions = [{**row, "needs_review": bool(row["needs_review"])} for row in rows]
        return {"transactions": transactions, **summarize_query(rows)}

    async def spending_summary(
        self,
        user_id: str,
        start_date: str,
        end_date: str,
        group_by: GroupBy = GroupBy.category,
    ) -> dict:
        try:
            rows = await self._repo.list_spending(user_id, start_date, end_date)
        except aiosqlite.Error as exc:
            logger.error("spending_summary_failed", user_id=user_id, error=str(exc))
            return {"error": _STORE_ERROR}

        summary = summarize_spending(rows, GroupBy(group_by))
        return {"period": {"start": start_date, "end": end_date}, **summary}

    async def recent_activity(
        self, user_id: str, days: int = 30, today: date | None = None
    ) -> dict:
        start = (today or clock.today()) - timedelta(days=days)
        try:
            rows = await self._repo.list_since(user_id, start.isoformat())
        except aiosqlite.Error as exc:
            logger.error("recent_activity_failed", user_id=user_id, error=str(exc))
            return {"error": _STORE_ERROR}

        return summarize_recent_activity(rows, days)


class LedgerService:
    """Narrow write entry points into the ledger."""

    def __init__(self, repo: TransactionRepository) -> None:
        self._repo = repo

    async def _require_classification(self, category: str) -> str:
        classification = await self._repo.get_category_classification(category)
        if classification is None:
            raise ValidationError(f"Invalid category: {category}. Please use a valid category name.")
        return classification

    async def categorize_transaction(
        self,
        user_id: str,
        transaction_id: str,
        category: str,
        notes: str | None = None,
    ) -> dict:
        classification = await self._require_classification(category)

        existing = await self._repo.get_by_id(user_id, transaction_id)
        if existing is None:
            raise NotFoundError("Transaction", transaction_id)

        await self._repo.update_categorization(
            user_id, transaction_id, category, classification, notes
        )
        logger.info(
            "transaction_categorized",
            user_id=user_id,
            transaction_id=transaction_id,
            category=category,
        )
        return {
            "success": True,
            "message": f'Transaction categorized as "{category}" ({classification})',
        }

    async def add_merchant_mapping(
        self,
        user_id: str,
        merchant_pattern: str,
        category: str,
        classification: Classification | None = None,
        notes: str | None = None,
    ) -> dict:
        default_classification = await self._require_classification(category)
        pattern = merchant_pattern.strip().lower()
        if not pattern:
            raise ValidationError("Merchant pattern must not be empty")

        await self._repo.upsert_merchant_mapping(
            user_id,
            pattern,
            category,
            str(classification) if classification else default_classification,
            notes,
        )
        logger.info("merchant_mapping_saved", user_id=user_id, pattern=pattern, category=category)
        return {"success": True, "message": f'Learned: "{pattern}" -> {category}'}

    async def ingest(self, user_id: str, records: list[TransactionRecord]) -> IngestResult:
        inserted = await self._repo.insert_many(user_id, records)
        return IngestResult(
            total_received=len(records),
            total_inserted=inserted,
            total_skipped=len(records) - inserted,
        )
