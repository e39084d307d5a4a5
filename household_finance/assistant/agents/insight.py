"""Insight agent: one prioritised observation about the user's current spending.

All data is fetched up front and the model is called once, without tools.
"""

import asyncio
import calendar
import json
from datetime import date, timedelta

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from household_finance import clock
from household_finance.assistant.classification import classify_insight_priority
from household_finance.assistant.prompts import (
    INSIGHT_REQUEST_MESSAGE,
    INSIGHT_SYSTEM_PROMPT,
    NO_NARRATIVE,
    NO_SEASONAL_PATTERNS,
)
from household_finance.assistant.schemas import InsightResult
from household_finance.assistant.tool_loop import message_text
from household_finance.config import settings
from household_finance.context.schemas import UserContext
from household_finance.context.service import ContextService
from household_finance.exceptions import AppError
from household_finance.insights.repository import InsightRepository
from household_finance.transactions.models import GroupBy
from household_finance.transactions.service import TransactionQueryService

logger = structlog.get_logger()


def month_bounds(today: date) -> tuple[date, date, date]:
    """Return (start of this month, start of last month, end of last month)."""
    start_of_month = today.replace(day=1)
    end_of_last_month = start_of_month - timedelta(days=1)
    return start_of_month, end_of_last_month.replace(day=1), end_of_last_month


def _dump(value) -> str:
    return json.dumps(value, indent=2, default=str)


class InsightAgent:
    def __init__(
        self,
        llm: BaseChatModel,
        context_service: ContextService,
        query_service: TransactionQueryService,
        insight_repo: InsightRepository,
        window_days: int | None = None,
    ) -> None:
        self._llm = llm
        self._context = context_service
        self._queries = query_service
        self._insights = insight_repo
        self._window_days = window_days or settings.insight_window_days

    async def gather(self, user_id: str, today: date) -> tuple[UserContext, dict]:
        """Collect the context and the data snapshot the insight is based on."""
        start_of_month, start_of_last_month, end_of_last_month = month_bounds(today)

        context, current_month, previous_month, recent_activity = await asyncio.gather(
            self._context.get_user_context(user_id),
            self._queries.spending_summary(
                user_id, start_of_month.isoformat(), today.isoformat(), GroupBy.category
            ),
            self._queries.spending_summary(
                user_id,
                start_of_last_month.isoformat(),
                end_of_last_month.isoformat(),
                GroupBy.category,
            ),
            self._queries.recent_activity(user_id, self._window_days, today=today),
        )

        days_in_month = calendar.monthrange(today.year, today.month)[1]
        seasonal = [p.model_dump(mode="json") for p in context.seasonal_patterns if p.applies_to(today.month)]

        snapshot = {
            "current_month": current_month,
            "previous_month": previous_month,
            "recent_activity": recent_activity,
            "day_of_month": today.day,
            "days_in_month": days_in_month,
            "percent_through_month": round(today.day / days_in_month * 100),
            "active_seasonal_patterns": seasonal,
        }
        return context, snapshot

    def build_prompt(self, context: UserContext, snapshot: dict) -> str:
        data = context.model_dump(mode="json")
        seasonal = snapshot["active_seasonal_patterns"]
        return INSIGHT_SYSTEM_PROMPT.format(
            context_narrative=context.context_narrative or NO_NARRATIVE,
            deliberate_tradeoffs=_dump(data["deliberate_tradeoffs"]),
            non_negotiables=_dump(data["non_negotiables"]),
            watch_patterns=_dump(data["watch_patterns"]),
            seasonal_patterns=_dump(seasonal) if seasonal else NO_SEASONAL_PATTERNS,
            spending_targets=_dump(data["spending_targets"]),
            percent_through_month=snapshot["percent_through_month"],
            day_of_month=snapshot["day_of_month"],
            days_in_month=snapshot["days_in_month"],
            current_month=_dump(snapshot["current_month"]),
            previous_month=_dump(snapshot["previous_month"]),
            window_days=self._window_days,
            recent_activity=_dump(snapshot["recent_activity"]),
            currency=settings.currency,
        )

    async def run(self, user_id: str, today: date | None = None) -> InsightResult:
        today = today or clock.today()
        context, snapshot = await self.gather(user_id, today)

        messages = [
            SystemMessage(content=self.build_prompt(context, snapshot)),
            HumanMessage(content=INSIGHT_REQUEST_MESSAGE),
        ]
        try:
            response = await self._llm.ainvoke(messages)
        except Exception as exc:
            logger.error("insight_generation_failed", user_id=user_id, error=str(exc))
            raise AppError("Failed to generate insight", code="LLM_ERROR") from exc

        content = message_text(response)
        priority = classify_insight_priority(content)
        record = await self._insights.create(user_id, content, str(priority), snapshot)

        logger.info("insight_generated", user_id=user_id, priority=str(priority), insight_id=record["id"])
        return InsightResult(content=content, priority=priority, insight_id=record["id"])
