import pytest
from langchain_core.messages import AIMessage, HumanMessage

from household_finance.conversations.models import AgentType
from household_finance.conversations.service import title_from_message
from household_finance.exceptions import NotFoundError

from conftest import OTHER_USER_ID, USER_ID


def test_title_is_truncated_to_fifty_characters():
    message = "x" * 80

    assert title_from_message(message) == "x" * 50 + "..."
    assert title_from_message("short question") == "short question"


async def test_turns_replay_in_order(conversation_service):
    conversation_id = await conversation_service.ensure_conversation(
        USER_ID, None, AgentType.chat, "Groceries"
    )

    await conversation_service.record_turn(conversation_id, "first", "answer one")
    await conversation_service.record_turn(conversation_id, "second", "answer two")

    history = await conversation_service.get_history(conversation_id)
    assert [type(m) for m in history] == [HumanMessage, AIMessage, HumanMessage, AIMessage]
    assert [m.content for m in history] == ["first", "answer one", "second", "answer two"]


async def test_empty_response_records_only_the_user_message(conversation_service):
    conversation_id = await conversation_service.ensure_conversation(
        USER_ID, None, AgentType.onboarding
    )

    await conversation_service.record_turn(conversation_id, "hi", "")

    history = await conversation_service.get_history(conversation_id)
    assert [m.content for m in history] == ["hi"]


async def test_existing_conversation_is_reused(conversation_service):
    conversation_id = await conversation_service.ensure_conversation(
        USER_ID, None, AgentType.chat
    )

    again = await conversation_service.ensure_conversation(
        USER_ID, conversation_id, AgentType.chat
    )

    assert again == conversation_id


async def test_conversations_are_never_shared(conversation_service):
    conversation_id = await conversation_service.ensure_conversation(
        USER_ID, None, AgentType.chat
    )

    with pytest.raises(NotFoundError):
        await conversation_service.ensure_conversation(
            OTHER_USER_ID, conversation_id, AgentType.chat
        )


async def test_unknown_conversation_is_not_found(conversation_service):
    with pytest.raises(NotFoundError):
        await conversation_service.ensure_conversation(USER_ID, "missing", AgentType.chat)


async def test_no_conversation_means_no_history(conversation_service):
    assert await conversation_service.get_history(None) == []
