"""Shared schemas for the assistant agents and the router."""

from __future__ import annotations

from enum import StrEnum
from operator import add
from typing import Annotated, TypedDict

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, Field

from household_finance.context.schemas import UserContext
from household_finance.insights.models import InsightPriority
from household_finance.onboarding.models import OnboardingPhase


class AgentRoute(StrEnum):
    onboarding = "onboarding"
    chat = "chat"
    insight = "insight"


# ---------------------------------------------------------------------------
# Agent results
# ---------------------------------------------------------------------------


class OnboardingResult(BaseModel):
    response: str
    complete: bool
    context: UserContext | None = None
    conversation_id: str | None = None


class ChatResult(BaseModel):
    response: str
    conversation_id: str | None = None


class InsightResult(BaseModel):
    content: str
    priority: InsightPriority
    insight_id: str


class OrchestrationResult(BaseModel):
    route: AgentRoute
    response: str
    conversation_id: str | None = None
    context_updated: bool = False


# ---------------------------------------------------------------------------
# Graph states
# ---------------------------------------------------------------------------


class ToolLoopState(TypedDict, total=False):
    messages: Annotated[list[BaseMessage], add]
    iteration_count: int
    response: str


class OrchestratorState(TypedDict, total=False):
    user_id: str
    message: str
    conversation_id: str | None
    is_onboarded: bool
    onboarding_phase: OnboardingPhase | None
    route: AgentRoute
    response: str
    context_updated: bool


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    conversation_id: str | None = None


class StatusResponse(BaseModel):
    needs_onboarding: bool
