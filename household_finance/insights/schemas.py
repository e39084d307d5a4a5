from pydantic import BaseModel

from household_finance.insights.models import InsightPriority


class InsightRecord(BaseModel):
    id: str
    content: str
    priority: InsightPriority
    created_at: str


class InsightResponse(BaseModel):
    insight: str
    priority: InsightPriority


class InsightHistoryResponse(BaseModel):
    insights: list[InsightRecord]
