"""Onboarding agent: the phase-by-phase interview that builds a user's context.

Every phase change is persisted the moment the model requests it, so an
interrupted turn resumes from the last phase reached.
"""

import json
from datetime import date

import pydantic
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.tools import BaseTool, StructuredTool
from pydantic import BaseModel, Field

from household_finance import clock
from household_finance.assistant.prompts import ONBOARDING_SYSTEM_PROMPT
from household_finance.assistant.schemas import OnboardingResult
from household_finance.assistant.tool_loop import ToolLoop
from household_finance.assistant.tools import AgentToolkit
from household_finance.config import settings
from household_finance.context.schemas import UserContext
from household_finance.context.service import ContextService
from household_finance.conversations.models import AgentType
from household_finance.conversations.service import ConversationService
from household_finance.onboarding.schemas import OnboardingState
from household_finance.onboarding.service import OnboardingService
from household_finance.onboarding.state_machine import OnboardingStateMachine
from household_finance.transactions.service import TransactionQueryService

logger = structlog.get_logger()

CONVERSATION_TITLE = "Financial Context Setup"


class TransitionPhaseArgs(BaseModel):
    next_phase: str = Field(
        description=(
            "The phase to move to. Must be the phase right after the current one: "
            "household, groceries, transport, subscriptions, bnpl, lifestyle, synthesis"
        )
    )
    gathered: dict = Field(
        default_factory=dict,
        description="Context gathered in the current phase to merge into overall context",
    )
    question_asked: str | None = Field(
        default=None,
        description="The main question you asked in this phase (to avoid repeating)",
    )


class CompleteOnboardingArgs(BaseModel):
    final_context: UserContext = Field(
        description="The complete structured context with all gathered information"
    )


class OnboardingSession:
    """Phase tools for one onboarding turn, persisting each change as it happens."""

    MUTATING_TOOLS = frozenset({"transition_phase", "complete_onboarding"})

    def __init__(self, user_id: str, state: OnboardingState, service: OnboardingService) -> None:
        self._user_id = user_id
        self._machine = OnboardingStateMachine(state)
        self._service = service
        self.final_context: UserContext | None = None

    @property
    def state(self) -> OnboardingState:
        return self._machine.state

    @property
    def is_complete(self) -> bool:
        return self._machine.is_complete

    async def transition_phase(
        self,
        next_phase: str,
        gathered: dict | None = None,
        question_asked: str | None = None,
    ) -> dict:
        previous = self._machine.phase
        state = self._machine.transition(next_phase, gathered, question_asked)
        await self._service.save_state(self._user_id, state)
        logger.info(
            "onboarding_phase_transitioned",
            user_id=self._user_id,
            from_phase=str(previous),
            to_phase=str(state.phase),
        )
        return {"success": True, "phase": str(state.phase)}

    async def complete_onboarding(self, final_context: UserContext) -> dict:
        state = self._machine.finalize(final_context)
        await self._service.save_state(self._user_id, state)
        self.final_context = final_context
        logger.info("onboarding_completed", user_id=self._user_id)
        return {"success": True, "message": "Onboarding complete! Context has been saved."}

    def completed_context(self) -> UserContext | None:
        """The finished context, recovered from saved state when this turn didn't finish it."""
        if not self.is_complete:
            return None
        if self.final_context is not None:
            return self.final_context
        try:
            return UserContext.model_validate(self.state.gathered_context)
        except pydantic.ValidationError:
            logger.warning("onboarding_context_malformed", user_id=self._user_id)
            return UserContext()

    def tools(self) -> list[BaseTool]:
        return [
            StructuredTool.from_function(
                coroutine=self.transition_phase,
                name="transition_phase",
                description=(
                    "Move to the next onboarding phase after gathering sufficient context "
                    "for the current phase. Phases advance one at a time."
                ),
                args_schema=TransitionPhaseArgs,
            ),
            StructuredTool.from_function(
                coroutine=self.complete_onboarding,
                name="complete_onboarding",
                description=(
                    "Finalize onboarding with the complete structured context. Only call this "
                    "in the synthesis phase after confirming your understanding with the user."
                ),
                args_schema=CompleteOnboardingArgs,
            ),
        ]


def build_onboarding_prompt(state: OnboardingState, today: date | None = None) -> str:
    today = today or clock.today()
    return ONBOARDING_SYSTEM_PROMPT.format(
        currency=settings.currency,
        today=today.strftime("%A %d %B %Y"),
        phase=str(state.phase),
        gathered_context=json.dumps(state.gathered_context, indent=2),
        questions_asked="\n".join(state.questions_asked) or "None yet",
    )


class OnboardingAgent:
    def __init__(
        self,
        llm: BaseChatModel,
        onboarding_service: OnboardingService,
        conversation_service: ConversationService,
        query_service: TransactionQueryService,
        context_service: ContextService,
        max_iterations: int | None = None,
    ) -> None:
        self._llm = llm
        self._onboarding = onboarding_service
        self._conversations = conversation_service
        self._queries = query_service
        self._context = context_service
        self._max_iterations = max_iterations

    async def run(
        self, user_id: str, message: str, conversation_id: str | None = None
    ) -> OnboardingResult:
        state = await self._onboarding.get_state(user_id)

        conversation_id = await self._conversations.ensure_conversation(
            user_id,
            conversation_id or state.conversation_id,
            AgentType.onboarding,
            CONVERSATION_TITLE,
        )
        if state.conversation_id != conversation_id:
            state = state.model_copy(update={"conversation_id": conversation_id})
            await self._onboarding.save_state(user_id, state)

        history = await self._conversations.get_history(conversation_id)

        session = OnboardingSession(user_id, state, self._onboarding)
        toolkit = AgentToolkit(user_id, self._queries, self._context)
        tools = toolkit.transaction_tools() + toolkit.context_read_tools() + session.tools()

        messages = [
            SystemMessage(content=build_onboarding_prompt(state)),
            *history,
            HumanMessage(content=message),
        ]
        loop = ToolLoop(
            "onboarding",
            self._llm,
            tools,
            mutating_tools=session.MUTATING_TOOLS,
            max_iterations=self._max_iterations,
        )
        response = await loop.run(messages)

        await self._conversations.record_turn(conversation_id, message, response)
        logger.info(
            "onboarding_turn_finished",
            user_id=user_id,
            conversation_id=conversation_id,
            phase=str(session.state.phase),
        )

        return OnboardingResult(
            response=response,
            complete=session.is_complete,
            context=session.completed_context(),
            conversation_id=conversation_id,
        )
