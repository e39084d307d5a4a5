from typing import Annotated

from fastapi import Depends
from langchain_core.language_models import BaseChatModel

from household_finance.assistant.agents.chat import ChatAgent
from household_finance.assistant.agents.insight import InsightAgent
from household_finance.assistant.agents.onboarding import OnboardingAgent
from household_finance.assistant.orchestrator import Orchestrator
from household_finance.assistant.service import AssistantService
from household_finance.auth import get_current_user
from household_finance.context.repository import ContextRepository
from household_finance.context.service import ContextService
from household_finance.conversations.repository import ConversationRepository
from household_finance.conversations.service import ConversationService
from household_finance.database import get_db
from household_finance.insights.repository import InsightRepository
from household_finance.llm.config import ModelRole
from household_finance.llm.factory import LLMFactory
from household_finance.onboarding.repository import OnboardingRepository
from household_finance.onboarding.service import OnboardingService
from household_finance.transactions.repository import TransactionRepository
from household_finance.transactions.service import LedgerService, TransactionQueryService

CurrentUser = Annotated[str, Depends(get_current_user)]


def get_transaction_repo() -> TransactionRepository:
    return TransactionRepository(get_db())


def get_query_service() -> TransactionQueryService:
    return TransactionQueryService(get_transaction_repo())


def get_ledger_service() -> LedgerService:
    return LedgerService(get_transaction_repo())


def get_context_service() -> ContextService:
    return ContextService(ContextRepository(get_db()))


def get_onboarding_service() -> OnboardingService:
    return OnboardingService(OnboardingRepository(get_db()))


def get_conversation_service() -> ConversationService:
    return ConversationService(ConversationRepository(get_db()))


def get_insight_repo() -> InsightRepository:
    return InsightRepository(get_db())


QueryServiceDep = Annotated[TransactionQueryService, Depends(get_query_service)]
LedgerServiceDep = Annotated[LedgerService, Depends(get_ledger_service)]
ContextServiceDep = Annotated[ContextService, Depends(get_context_service)]
OnboardingServiceDep = Annotated[OnboardingService, Depends(get_onboarding_service)]
ConversationServiceDep = Annotated[ConversationService, Depends(get_conversation_service)]
InsightRepoDep = Annotated[InsightRepository, Depends(get_insight_repo)]


def get_chat_llm() -> BaseChatModel:
    return LLMFactory.create(ModelRole.CONVERSATION)


def get_insight_llm() -> BaseChatModel:
    return LLMFactory.create(ModelRole.INSIGHT)


ChatLLMDep = Annotated[BaseChatModel, Depends(get_chat_llm)]
InsightLLMDep = Annotated[BaseChatModel, Depends(get_insight_llm)]


def get_onboarding_agent(
    llm: ChatLLMDep,
    onboarding: OnboardingServiceDep,
    conversations: ConversationServiceDep,
    queries: QueryServiceDep,
    context: ContextServiceDep,
) -> OnboardingAgent:
    return OnboardingAgent(llm, onboarding, conversations, queries, context)


def get_chat_agent(
    llm: ChatLLMDep,
    conversations: ConversationServiceDep,
    queries: QueryServiceDep,
    context: ContextServiceDep,
    ledger: LedgerServiceDep,
) -> ChatAgent:
    return ChatAgent(llm, conversations, queries, context, ledger)


def get_insight_agent(
    llm: InsightLLMDep,
    context: ContextServiceDep,
    queries: QueryServiceDep,
    insights: InsightRepoDep,
) -> InsightAgent:
    return InsightAgent(llm, context, queries, insights)


InsightAgentDep = Annotated[InsightAgent, Depends(get_insight_agent)]


def get_orchestrator(
    context: ContextServiceDep,
    onboarding: OnboardingServiceDep,
    onboarding_agent: Annotated[OnboardingAgent, Depends(get_onboarding_agent)],
    chat_agent: Annotated[ChatAgent, Depends(get_chat_agent)],
    insight_agent: InsightAgentDep,
) -> Orchestrator:
    return Orchestrator(context, onboarding, onboarding_agent, chat_agent, insight_agent)


def get_assistant_service(
    orchestrator: Annotated[Orchestrator, Depends(get_orchestrator)],
) -> AssistantService:
    return AssistantService(orchestrator)


AssistantServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]
