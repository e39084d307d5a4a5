"""Keyword classifiers for routing messages and ranking insights.

Both tables are ordered; the first entry with a matching keyword wins.
"""

from household_finance.assistant.schemas import AgentRoute
from household_finance.insights.models import InsightPriority

_INSIGHT_REQUEST_KEYWORDS: tuple[str, ...] = (
    "summary",
    "how am i doing",
    "update",
    "insight",
    "overview",
    "status",
    "how's my spending",
    "how is my spending",
    "check in",
    "checkin",
)

_PRIORITY_KEYWORDS: list[tuple[InsightPriority, tuple[str, ...]]] = [
    (InsightPriority.alert, ("over budget", "exceeded", "alert", "concerning")),
    (InsightPriority.warning, ("on pace to", "heading towards", "warning", "watch out")),
    (InsightPriority.watch, ("pattern", "noticed")),
    (InsightPriority.affirmation, ("on track", "looking good", "well done", "all good")),
]


def classify_intent(message: str) -> AgentRoute:
    """Route an onboarded user's message to the insight or chat agent."""
    lowered = message.lower()
    if any(keyword in lowered for keyword in _INSIGHT_REQUEST_KEYWORDS):
        return AgentRoute.insight
    return AgentRoute.chat


def classify_insight_priority(text: str) -> InsightPriority:
    lowered = text.lower()
    for priority, keywords in _PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return priority
    return InsightPriority.observation
