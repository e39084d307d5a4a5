import json
from datetime import date

import pytest
from langchain_core.messages import HumanMessage, SystemMessage, ToolMessage

from household_finance.assistant.agents.chat import ChatAgent
from household_finance.assistant.agents.insight import InsightAgent, month_bounds
from household_finance.assistant.agents.onboarding import CONVERSATION_TITLE, OnboardingAgent
from household_finance.context.schemas import SeasonalPattern, UserContext
from household_finance.conversations.repository import ConversationRepository
from household_finance.exceptions import AppError
from household_finance.insights.models import InsightPriority
from household_finance.onboarding.models import OnboardingPhase
from household_finance.onboarding.schemas import OnboardingState

from conftest import FINAL_CONTEXT, USER_ID, ScriptedChatModel, reply, tool_call


def _tool_payloads(model: ScriptedChatModel, call_index: int) -> list[dict]:
    return [
        json.loads(m.content) for m in model.calls[call_index] if isinstance(m, ToolMessage)
    ]


@pytest.fixture
def onboarding_agent_for(onboarding_service, conversation_service, query_service, context_service):
    def build(model):
        return OnboardingAgent(
            model, onboarding_service, conversation_service, query_service, context_service
        )

    return build


@pytest.fixture
def chat_agent_for(conversation_service, query_service, context_service, ledger_service):
    def build(model):
        return ChatAgent(model, conversation_service, query_service, context_service, ledger_service)

    return build


@pytest.fixture
def insight_agent_for(context_service, query_service, insight_repo):
    def build(model):
        return InsightAgent(model, context_service, query_service, insight_repo)

    return build


# ---------------------------------------------------------------------------
# Onboarding agent
# ---------------------------------------------------------------------------


async def test_onboarding_turn_advances_and_persists_phase(
    onboarding_agent_for, onboarding_service, db, seeded
):
    model = ScriptedChatModel(
        [
            tool_call("get_recent_activity", {"days": 30}),
            tool_call(
                "transition_phase",
                {"next_phase": "household", "gathered": {"intro_done": True}, "question_asked": "Ready?"},
            ),
            reply("Great. Who lives in your household?"),
        ]
    )

    result = await onboarding_agent_for(model).run(USER_ID, "hi")

    assert result.response == "Great. Who lives in your household?"
    assert result.complete is False
    assert result.context is None
    state = await onboarding_service.get_state(USER_ID)
    assert state.phase is OnboardingPhase.household
    assert state.gathered_context == {"intro_done": True}
    assert state.conversation_id == result.conversation_id

    conversation = await ConversationRepository(db).get(result.conversation_id)
    assert conversation["agent_type"] == "onboarding"
    assert conversation["title"] == CONVERSATION_TITLE


async def test_onboarding_offers_phase_tools_but_not_context_writes(onboarding_agent_for):
    model = ScriptedChatModel([reply("Hi! Let's get started.")])

    await onboarding_agent_for(model).run(USER_ID, "hi")

    assert "transition_phase" in model.bound_tools
    assert "complete_onboarding" in model.bound_tools
    assert "get_transactions" in model.bound_tools
    assert "update_user_context" not in model.bound_tools


async def test_onboarding_prompt_carries_phase_and_questions(onboarding_agent_for, onboarding_service):
    await onboarding_service.save_state(
        USER_ID,
        OnboardingState(
            phase=OnboardingPhase.transport,
            gathered_context={"cars": 1},
            questions_asked=["Do you commute?"],
        ),
    )
    model = ScriptedChatModel([reply("Tell me about tolls.")])

    await onboarding_agent_for(model).run(USER_ID, "ok")

    system = model.calls[0][0]
    assert isinstance(system, SystemMessage)
    assert "Current phase: transport" in system.content
    assert '"cars": 1' in system.content
    assert "Do you commute?" in system.content


async def test_skipping_a_phase_is_refused_and_state_kept(onboarding_agent_for, onboarding_service):
    model = ScriptedChatModel(
        [
            tool_call("transition_phase", {"next_phase": "bnpl", "gathered": {"skip": True}}),
            reply("Let's start with your household first."),
        ]
    )

    await onboarding_agent_for(model).run(USER_ID, "skip ahead")

    payload = _tool_payloads(model, 1)[0]
    assert "error" in payload
    state = await onboarding_service.get_state(USER_ID)
    assert state.phase is OnboardingPhase.intro
    assert state.gathered_context == {}


async def test_onboarding_completes_from_synthesis(onboarding_agent_for, onboarding_service):
    await onboarding_service.save_state(USER_ID, OnboardingState(phase=OnboardingPhase.synthesis))
    model = ScriptedChatModel(
        [
            tool_call("complete_onboarding", {"final_context": FINAL_CONTEXT}),
            reply("All set. I've saved everything."),
        ]
    )

    result = await onboarding_agent_for(model).run(USER_ID, "Yes, that's right")

    assert result.complete is True
    assert result.context.context_narrative == FINAL_CONTEXT["context_narrative"]
    assert result.context.spending_targets.discretionary_pct == 30
    state = await onboarding_service.get_state(USER_ID)
    assert state.phase is OnboardingPhase.complete


async def test_completion_before_synthesis_is_refused(onboarding_agent_for, onboarding_service):
    await onboarding_service.save_state(USER_ID, OnboardingState(phase=OnboardingPhase.lifestyle))
    model = ScriptedChatModel(
        [
            tool_call("complete_onboarding", {"final_context": FINAL_CONTEXT}),
            reply("We still have a little to cover."),
        ]
    )

    result = await onboarding_agent_for(model).run(USER_ID, "done?")

    assert result.complete is False
    assert "error" in _tool_payloads(model, 1)[0]
    assert (await onboarding_service.get_phase(USER_ID)) is OnboardingPhase.lifestyle


async def test_onboarding_resumes_its_conversation(onboarding_agent_for, conversation_service):
    first = await onboarding_agent_for(ScriptedChatModel([reply("Welcome!")])).run(USER_ID, "hi")
    model = ScriptedChatModel([reply("Good to hear.")])

    second = await onboarding_agent_for(model).run(USER_ID, "sounds good")

    assert second.conversation_id == first.conversation_id
    sent = [m.content for m in model.calls[0][1:]]
    assert sent == ["hi", "Welcome!", "sounds good"]


async def test_phase_change_survives_a_failed_turn(onboarding_agent_for, onboarding_service, conversation_service):
    model = ScriptedChatModel(
        [
            tool_call("transition_phase", {"next_phase": "household", "gathered": {}}),
            ConnectionError("timeout"),
        ]
    )

    with pytest.raises(AppError):
        await onboarding_agent_for(model).run(USER_ID, "hi")

    state = await onboarding_service.get_state(USER_ID)
    assert state.phase is OnboardingPhase.household
    assert await conversation_service.get_history(state.conversation_id) == []


# ---------------------------------------------------------------------------
# Chat agent
# ---------------------------------------------------------------------------


async def test_chat_creates_titled_conversation_and_records_turn(chat_agent_for, conversation_service, db, seeded):
    model = ScriptedChatModel(
        [
            tool_call("get_transactions", {"merchant": "woolworths"}),
            reply("You spent $120.50 at Woolworths on 03/06/2024."),
        ]
    )
    question = "How much did I spend at Woolworths in the first week of June this year?"

    result = await chat_agent_for(model).run(USER_ID, question)

    assert _tool_payloads(model, 1)[0]["transactions"][0]["id"] == "t1"
    conversation = await ConversationRepository(db).get(result.conversation_id)
    assert conversation["agent_type"] == "chat"
    assert conversation["title"] == question[:50] + "..."
    history = await conversation_service.get_history(result.conversation_id)
    assert [m.content for m in history] == [question, result.response]


async def test_chat_prompt_reflects_current_context(chat_agent_for, context_service):
    await context_service.save_user_context(USER_ID, UserContext.model_validate(FINAL_CONTEXT))
    model = ScriptedChatModel([reply("Sure.")])

    await chat_agent_for(model).run(USER_ID, "hello")

    system = model.calls[0][0].content
    assert FINAL_CONTEXT["context_narrative"] in system
    assert "Meal kits" in system
    assert "Kids swimming" in system
    assert "AUD" in system


async def test_chat_remembers_corrections(chat_agent_for, context_service):
    model = ScriptedChatModel(
        [
            tool_call(
                "update_user_context",
                {
                    "field": "deliberate_tradeoffs",
                    "action": "append",
                    "value": {"item": "Gym", "reasoning": "non-negotiable health habit"},
                },
            ),
            reply("Got it, I won't flag the gym."),
        ]
    )

    await chat_agent_for(model).run(USER_ID, "Stop flagging my gym membership")

    context = await context_service.get_user_context(USER_ID)
    assert [t.item for t in context.deliberate_tradeoffs] == ["Gym"]
    assert _tool_payloads(model, 1)[0]["success"] is True


async def test_chat_surfaces_rejected_updates_to_the_model(chat_agent_for):
    model = ScriptedChatModel(
        [
            tool_call("categorize_transaction", {"transaction_id": "t1", "category": "Yachts"}),
            reply("That isn't a category I know."),
        ]
    )

    result = await chat_agent_for(model).run(USER_ID, "Put t1 under yachts")

    assert result.response == "That isn't a category I know."
    assert _tool_payloads(model, 1)[0]["error"].startswith("Invalid category: Yachts")


async def test_chat_offers_write_tools(chat_agent_for):
    model = ScriptedChatModel([reply("Hi")])

    await chat_agent_for(model).run(USER_ID, "hi")

    assert {"update_user_context", "add_merchant_mapping", "categorize_transaction"} <= set(
        model.bound_tools
    )
    assert "transition_phase" not in model.bound_tools


# ---------------------------------------------------------------------------
# Insight agent
# ---------------------------------------------------------------------------


def test_month_bounds_cross_year():
    assert month_bounds(date(2024, 1, 15)) == (
        date(2024, 1, 1),
        date(2023, 12, 1),
        date(2023, 12, 31),
    )


async def test_insight_is_classified_and_archived(insight_agent_for, insight_repo, db, seeded):
    model = ScriptedChatModel([reply("Dining out is on pace to pass last month by the 20th.")])

    result = await insight_agent_for(model).run(USER_ID, today=date(2024, 6, 7))

    assert result.priority is InsightPriority.warning
    stored = await insight_repo.list_recent(USER_ID)
    assert [row["id"] for row in stored] == [result.insight_id]

    cursor = await db.execute("SELECT data_snapshot FROM insights WHERE id = ?", (result.insight_id,))
    snapshot = json.loads((await cursor.fetchone())["data_snapshot"])
    assert snapshot["current_month"]["total"] == 165.5
    assert snapshot["previous_month"]["total"] == 30.0
    assert snapshot["day_of_month"] == 7
    assert snapshot["days_in_month"] == 30
    assert snapshot["percent_through_month"] == 23


async def test_insight_is_single_shot_without_tools(insight_agent_for):
    model = ScriptedChatModel([reply("All good this month.")])

    await insight_agent_for(model).run(USER_ID, today=date(2024, 6, 7))

    assert len(model.calls) == 1
    assert model.bound_tools == []
    assert isinstance(model.calls[0][1], HumanMessage)
    assert model.calls[0][1].content == "Generate my spending insight."


async def test_insight_prompt_lists_only_active_seasonal_patterns(insight_agent_for, context_service):
    context = UserContext(
        seasonal_patterns=[
            SeasonalPattern(months=[12], categories=["Gifts"], note="Christmas"),
            SeasonalPattern(months=[6], categories=["Utilities"], note="Winter heating"),
        ]
    )
    await context_service.save_user_context(USER_ID, context)
    model = ScriptedChatModel([reply("Heating is up, as expected for winter.")])

    await insight_agent_for(model).run(USER_ID, today=date(2024, 6, 7))

    system = model.calls[0][0].content
    assert "Winter heating" in system
    assert "Christmas" not in system


async def test_failed_model_call_stores_nothing(insight_agent_for, insight_repo):
    model = ScriptedChatModel([ConnectionError("provider down")])

    with pytest.raises(AppError):
        await insight_agent_for(model).run(USER_ID, today=date(2024, 6, 7))

    assert await insight_repo.list_recent(USER_ID) == []
