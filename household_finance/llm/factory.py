import structlog
from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from household_finance.config import settings
from household_finance.exceptions import AppError
from household_finance.llm.config import DEFAULT_MODELS, LLMProvider, ModelRole, max_tokens_for

logger = structlog.get_logger()


class LLMFactory:
    """Builds the chat model behind an agent from the configured provider."""

    @staticmethod
    def create(role: ModelRole = ModelRole.CONVERSATION, **kwargs: object) -> BaseChatModel:
        try:
            provider = LLMProvider(settings.llm_provider)
        except ValueError:
            raise AppError(
                f"Unknown LLM provider: '{settings.llm_provider}'", code="LLM_CONFIG_ERROR"
            ) from None

        model = settings.llm_model or DEFAULT_MODELS[provider]
        max_tokens = max_tokens_for(role)

        match provider:
            case LLMProvider.OPENAI:
                api_key = settings.openai_api_key
                client_cls = ChatOpenAI
            case LLMProvider.ANTHROPIC:
                api_key = settings.anthropic_api_key
                client_cls = ChatAnthropic

        if not api_key:
            raise AppError(f"{provider} API key is not configured", code="LLM_CONFIG_ERROR")

        logger.debug("llm_created", provider=str(provider), model=model, role=str(role))
        return client_cls(model=model, api_key=api_key, max_tokens=max_tokens, **kwargs)  # type: ignore[arg-type]
