import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from household_finance.conversations.models import AgentType, MessageRole
from household_finance.conversations.repository import ConversationRepository
from household_finance.exceptions import NotFoundError

logger = structlog.get_logger()

_TITLE_LENGTH = 50


def title_from_message(message: str) -> str:
    if len(message) > _TITLE_LENGTH:
        return message[:_TITLE_LENGTH] + "..."
    return message


class ConversationService:
    def __init__(self, repo: ConversationRepository) -> None:
        self._repo = repo

    async def ensure_conversation(
        self,
        user_id: str,
        conversation_id: str | None,
        agent_type: AgentType,
        title: str | None = None,
    ) -> str:
        """Return a conversation id owned by ``user_id``, creating one if needed."""
        if conversation_id:
            existing = await self._repo.get(conversation_id)
            if existing is None or existing["user_id"] != user_id:
                raise NotFoundError("Conversation", conversation_id)
            return conversation_id

        new_id = await self._repo.create(user_id, str(agent_type), title)
        logger.info(
            "conversation_created",
            user_id=user_id,
            conversation_id=new_id,
            agent_type=str(agent_type),
        )
        return new_id

    async def get_history(self, conversation_id: str | None) -> list[BaseMessage]:
        if not conversation_id:
            return []

        history: list[BaseMessage] = []
        for row in await self._repo.list_messages(conversation_id):
            if row["role"] == MessageRole.user:
                history.append(HumanMessage(content=row["content"]))
            elif row["role"] == MessageRole.assistant:
                history.append(AIMessage(content=row["content"]))
        return history

    async def record_turn(self, conversation_id: str, user_message: str, response: str) -> None:
        messages = [(str(MessageRole.user), user_message)]
        if response:
            messages.append((str(MessageRole.assistant), response))
        await self._repo.append_messages(conversation_id, messages)
