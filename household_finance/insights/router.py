from fastapi import APIRouter, Query

from household_finance.dependencies import CurrentUser, InsightAgentDep, InsightRepoDep
from household_finance.insights.schemas import (
    InsightHistoryResponse,
    InsightRecord,
    InsightResponse,
)

router = APIRouter()


@router.get("/", response_model=InsightResponse)
async def generate_insight(agent: InsightAgentDep, user_id: CurrentUser) -> InsightResponse:
    """Generate and archive the one insight that matters most right now."""
    result = await agent.run(user_id)
    return InsightResponse(insight=result.content, priority=result.priority)


@router.get("/history", response_model=InsightHistoryResponse)
async def list_insights(
    repo: InsightRepoDep,
    user_id: CurrentUser,
    limit: int = Query(default=10, ge=1, le=100),
) -> InsightHistoryResponse:
    rows = await repo.list_recent(user_id, limit)
    return InsightHistoryResponse(insights=[InsightRecord.model_validate(row) for row in rows])
