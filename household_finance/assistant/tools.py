"""LangChain tools that the assistant agents can call.

Tools are built per request and closed over one user id, so the model can
never read or write another household's data.
"""

from typing import Any

from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from household_finance.context.models import ContextField, UpdateAction
from household_finance.context.schemas import ContextUpdate
from household_finance.context.service import ContextService
from household_finance.transactions.models import Classification, GroupBy
from household_finance.transactions.schemas import TransactionFilter
from household_finance.transactions.service import LedgerService, TransactionQueryService

# ---------------------------------------------------------------------------
# Argument schemas
# ---------------------------------------------------------------------------


class GetTransactionsArgs(BaseModel):
    start_date: str | None = Field(default=None, description="Start date in ISO format (YYYY-MM-DD)")
    end_date: str | None = Field(default=None, description="End date in ISO format (YYYY-MM-DD)")
    category: str | None = Field(default=None, description="Filter by exact category name")
    classification: Classification | None = Field(
        default=None, description="Filter by spending classification"
    )
    merchant: str | None = Field(
        default=None, description="Search by merchant name (partial match, case insensitive)"
    )
    min_amount: float | None = Field(default=None, description="Minimum transaction amount")
    max_amount: float | None = Field(default=None, description="Maximum transaction amount")
    needs_review: bool | None = Field(
        default=None, description="Only transactions flagged (or not flagged) for review"
    )
    limit: int = Field(default=50, ge=1, le=200, description="Maximum results to return")


class GetSpendingSummaryArgs(BaseModel):
    start_date: str = Field(description="Start date in ISO format (YYYY-MM-DD)")
    end_date: str = Field(description="End date in ISO format (YYYY-MM-DD)")
    group_by: GroupBy = Field(description="How to group the results")


class GetRecentActivityArgs(BaseModel):
    days: int = Field(default=30, ge=1, le=366, description="Number of days to look back")


class GetUserContextArgs(BaseModel):
    pass


class UpdateUserContextArgs(BaseModel):
    field: ContextField = Field(description="Which context field to change")
    action: UpdateAction = Field(
        description=(
            "set replaces the field, append adds one entry to a list field, "
            "remove deletes entries from a list field by index or by matching object"
        )
    )
    value: Any = Field(description="The value to set, append or remove")


class AddMerchantMappingArgs(BaseModel):
    merchant_pattern: str = Field(description="Merchant name pattern to match (case insensitive)")
    category: str = Field(description="The category to assign")
    classification: Classification | None = Field(
        default=None, description="Optional classification override"
    )


class CategorizeTransactionArgs(BaseModel):
    transaction_id: str = Field(description="The transaction ID to update")
    category: str = Field(description="A valid category name")
    notes: str | None = Field(default=None, description="Why this category was chosen")


# ---------------------------------------------------------------------------
# Toolkit
# ---------------------------------------------------------------------------


class AgentToolkit:
    """Builds the shared transaction and context tools for one user."""

    MUTATING_TOOLS = frozenset(
        {"update_user_context", "add_merchant_mapping", "categorize_transaction"}
    )

    def __init__(
        self,
        user_id: str,
        query_service: TransactionQueryService,
        context_service: ContextService,
        ledger_service: LedgerService | None = None,
    ) -> None:
        self._user_id = user_id
        self._queries = query_service
        self._context = context_service
        self._ledger = ledger_service

    # -- transaction reads ---------------------------------------------------

    async def get_transactions(
        self,
        start_date: str | None = None,
        end_date: str | None = None,
        category: str | None = None,
        classification: Classification | None = None,
        merchant: str | None = None,
        min_amount: float | None = None,
        max_amount: float | None = None,
        needs_review: bool | None = None,
        limit: int = 50,
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
        return await self._queries.query_transactions(self._user_id, filters)

    async def get_spending_summary(self, start_date: str, end_date: str, group_by: GroupBy) -> dict:
        return await self._queries.spending_summary(self._user_id, start_date, end_date, group_by)

    async def get_recent_activity(self, days: int = 30) -> dict:
        return await self._queries.recent_activity(self._user_id, days)

    # -- context -------------------------------------------------------------

    async def get_user_context(self) -> dict:
        context = await self._context.get_user_context(self._user_id)
        return context.model_dump(mode="json")

    async def update_user_context(self, field: ContextField, action: UpdateAction, value: Any) -> dict:
        update = ContextUpdate(field=field, action=action, value=value)
        updated = await self._context.update_user_context(self._user_id, update)
        return {"success": True, "field": str(field), "value": updated.model_dump(mode="json")[field]}

    # -- ledger writes -------------------------------------------------------

    async def add_merchant_mapping(
        self,
        merchant_pattern: str,
        category: str,
        classification: Classification | None = None,
    ) -> dict:
        return await self._ledger.add_merchant_mapping(
            self._user_id, merchant_pattern, category, classification
        )

    async def categorize_transaction(
        self, transaction_id: str, category: str, notes: str | None = None
    ) -> dict:
        return await self._ledger.categorize_transaction(
            self._user_id, transaction_id, category, notes
        )

    # -- tool lists ----------------------------------------------------------

    def transaction_tools(self) -> list[BaseTool]:
        return [
            StructuredTool.from_function(
                coroutine=self.get_transactions,
                name="get_transactions",
                description=(
                    "Fetch transactions with optional filters. Use for questions about "
                    "specific spending, merchants, or time periods. Amounts are positive "
                    "for spending and negative for income."
                ),
                args_schema=GetTransactionsArgs,
            ),
            StructuredTool.from_function(
                coroutine=self.get_spending_summary,
                name="get_spending_summary",
                description=(
                    "Get aggregated spending for a period, grouped by category, "
                    "classification or merchant. Income is excluded."
                ),
                args_schema=GetSpendingSummaryArgs,
            ),
            StructuredTool.from_function(
                coroutine=self.get_recent_activity,
                name="get_recent_activity",
                description=(
                    "Get recent spending activity: totals, essential vs discretionary split, "
                    "average daily spend and top merchants."
                ),
                args_schema=GetRecentActivityArgs,
            ),
        ]

    def context_read_tools(self) -> list[BaseTool]:
        return [
            StructuredTool.from_function(
                coroutine=self.get_user_context,
                name="get_user_context",
                description=(
                    "Get the user's financial context including trade-offs, "
                    "non-negotiables, watch patterns and targets."
                ),
                args_schema=GetUserContextArgs,
            ),
        ]

    def context_write_tools(self) -> list[BaseTool]:
        return [
            StructuredTool.from_function(
                coroutine=self.update_user_context,
                name="update_user_context",
                description=(
                    "Update one field of the user's context. Use when the user reveals or "
                    "corrects something about their finances. List fields accept set, "
                    "append and remove; spending_targets and context_narrative accept set only."
                ),
                args_schema=UpdateUserContextArgs,
            ),
        ]

    def ledger_tools(self) -> list[BaseTool]:
        if self._ledger is None:
            return []
        return [
            StructuredTool.from_function(
                coroutine=self.add_merchant_mapping,
                name="add_merchant_mapping",
                description="Learn a merchant to category mapping for future auto-categorization.",
                args_schema=AddMerchantMappingArgs,
            ),
            StructuredTool.from_function(
                coroutine=self.categorize_transaction,
                name="categorize_transaction",
                description=(
                    "Set the category of one transaction once the user confirms it. "
                    "Also clears its needs-review flag."
                ),
                args_schema=CategorizeTransactionArgs,
            ),
        ]
