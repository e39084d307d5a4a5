from enum import StrEnum

from household_finance.config import settings


class LLMProvider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ModelRole(StrEnum):
    """What a model instance is used for; each role gets its own output budget."""

    CONVERSATION = "conversation"
    INSIGHT = "insight"


DEFAULT_MODELS: dict[LLMProvider, str] = {
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.ANTHROPIC: "claude-sonnet-4-20250514",
}


def max_tokens_for(role: ModelRole) -> int:
    match role:
        case ModelRole.INSIGHT:
            return settings.insight_max_tokens
        case _:
            return settings.llm_max_tokens
