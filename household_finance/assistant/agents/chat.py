import json
from datetime import date

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from household_finance import clock
from household_finance.assistant.prompts import CHAT_SYSTEM_PROMPT, NO_NARRATIVE
from household_finance.assistant.schemas import ChatResult
from household_finance.assistant.tool_loop import ToolLoop
from household_finance.assistant.tools import AgentToolkit
from household_finance.config import settings
from household_finance.context.schemas import UserContext
from household_finance.context.service import ContextService
from household_finance.conversations.models import AgentType
from household_finance.conversations.service import ConversationService, title_from_message
from household_finance.transactions.service import LedgerService, TransactionQueryService

logger = structlog.get_logger()


def _dump(items) -> str:
    return json.dumps(items, indent=2)


def build_chat_prompt(context: UserContext, today: date | None = None) -> str:
    today = today or clock.today()
    data = context.model_dump(mode="json")
    return CHAT_SYSTEM_PROMPT.format(
        context_narrative=context.context_narrative or NO_NARRATIVE,
        deliberate_tradeoffs=_dump(data["deliberate_tradeoffs"]),
        non_negotiables=_dump(data["non_negotiables"]),
        watch_patterns=_dump(data["watch_patterns"]),
        spending_targets=_dump(data["spending_targets"]),
        currency=settings.currency,
        today=today.strftime("%A %d %B %Y"),
    )


class ChatAgent:
    """Free-form questions answered against the user's transactions and context."""

    def __init__(
        self,
        llm: BaseChatModel,
        conversation_service: ConversationService,
        query_service: TransactionQueryService,
        context_service: ContextService,
        ledger_service: LedgerService,
        max_iterations: int | None = None,
    ) -> None:
        self._llm = llm
        self._conversations = conversation_service
        self._queries = query_service
        self._context = context_service
        self._ledger = ledger_service
        self._max_iterations = max_iterations

    async def run(self, user_id: str, message: str, conversation_id: str | None = None) -> ChatResult:
        context = await self._context.get_user_context(user_id)
        conversation_id = await self._conversations.ensure_conversation(
            user_id, conversation_id, AgentType.chat, title_from_message(message)
        )
        history = await self._conversations.get_history(conversation_id)

        toolkit = AgentToolkit(user_id, self._queries, self._context, self._ledger)
        tools = (
            toolkit.transaction_tools()
            + toolkit.context_read_tools()
            + toolkit.context_write_tools()
            + toolkit.ledger_tools()
        )

        messages = [
            SystemMessage(content=build_chat_prompt(context)),
            *history,
            HumanMessage(content=message),
        ]
        loop = ToolLoop(
            "chat",
            self._llm,
            tools,
            mutating_tools=AgentToolkit.MUTATING_TOOLS,
            max_iterations=self._max_iterations,
        )
        response = await loop.run(messages)

        await self._conversations.record_turn(conversation_id, message, response)
        logger.info("chat_turn_finished", user_id=user_id, conversation_id=conversation_id)
        return ChatResult(response=response, conversation_id=conversation_id)
