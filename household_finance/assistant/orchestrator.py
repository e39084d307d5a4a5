"""Top-level router for inbound assistant messages.

  START -> load_user_state --(conditional)--> run_onboarding | run_chat | run_insight -> END

Routing is a pure function of the stored onboarding flags and the message;
no model call is made before an agent is chosen.
"""

import structlog
from langgraph.graph import END, START, StateGraph

from household_finance.assistant.agents.chat import ChatAgent
from household_finance.assistant.agents.insight import InsightAgent
from household_finance.assistant.agents.onboarding import OnboardingAgent
from household_finance.assistant.classification import classify_intent
from household_finance.assistant.schemas import AgentRoute, OrchestrationResult, OrchestratorState
from household_finance.context.service import ContextService
from household_finance.onboarding.models import OnboardingPhase
from household_finance.onboarding.service import OnboardingService

logger = structlog.get_logger()

RESTART_MESSAGE = "hi"


def decide_route(
    is_onboarded: bool, onboarding_phase: OnboardingPhase | None, message: str
) -> AgentRoute:
    """Pick the agent for a message.

    Users who haven't finished onboarding, or who have an interview in
    progress, always go to the onboarding agent. Everyone else is routed by
    keyword.
    """
    has_active_onboarding = (
        onboarding_phase is not None and onboarding_phase is not OnboardingPhase.complete
    )
    if not is_onboarded or has_active_onboarding:
        return AgentRoute.onboarding
    return classify_intent(message)


class Orchestrator:
    def __init__(
        self,
        context_service: ContextService,
        onboarding_service: OnboardingService,
        onboarding_agent: OnboardingAgent,
        chat_agent: ChatAgent,
        insight_agent: InsightAgent,
    ) -> None:
        self._context = context_service
        self._onboarding = onboarding_service
        self._onboarding_agent = onboarding_agent
        self._chat_agent = chat_agent
        self._insight_agent = insight_agent
        self._graph = self._build_graph()

    # -- nodes ---------------------------------------------------------------

    async def _load_user_state(self, state: OrchestratorState) -> dict:
        user_id = state["user_id"]
        is_onboarded = await self._context.is_onboarding_complete(user_id)
        phase = await self._onboarding.get_phase(user_id)
        route = decide_route(is_onboarded, phase, state["message"])

        logger.info(
            "message_routed",
            user_id=user_id,
            route=str(route),
            is_onboarded=is_onboarded,
            onboarding_phase=str(phase) if phase else None,
        )
        return {"is_onboarded": is_onboarded, "onboarding_phase": phase, "route": route}

    async def _run_onboarding(self, state: OrchestratorState) -> dict:
        user_id = state["user_id"]
        result = await self._onboarding_agent.run(
            user_id, state["message"], state.get("conversation_id")
        )

        context_updated = False
        if result.complete and result.context is not None:
            await self._context.save_user_context(user_id, result.context)
            context_updated = True

        return {
            "response": result.response,
            "conversation_id": result.conversation_id,
            "context_updated": context_updated,
        }

    async def _run_chat(self, state: OrchestratorState) -> dict:
        result = await self._chat_agent.run(
            state["user_id"], state["message"], state.get("conversation_id")
        )
        return {"response": result.response, "conversation_id": result.conversation_id}

    async def _run_insight(self, state: OrchestratorState) -> dict:
        result = await self._insight_agent.run(state["user_id"])
        return {"response": result.content, "conversation_id": None}

    # -- graph ---------------------------------------------------------------

    @staticmethod
    def _select_agent(state: OrchestratorState) -> str:
        match state["route"]:
            case AgentRoute.onboarding:
                return "run_onboarding"
            case AgentRoute.insight:
                return "run_insight"
            case _:
                return "run_chat"

    def _build_graph(self):
        workflow = StateGraph(OrchestratorState)

        workflow.add_node("load_user_state", self._load_user_state)
        workflow.add_node("run_onboarding", self._run_onboarding)
        workflow.add_node("run_chat", self._run_chat)
        workflow.add_node("run_insight", self._run_insight)

        workflow.add_edge(START, "load_user_state")
        workflow.add_conditional_edges(
            "load_user_state",
            self._select_agent,
            {
                "run_onboarding": "run_onboarding",
                "run_chat": "run_chat",
                "run_insight": "run_insight",
            },
        )
        workflow.add_edge("run_onboarding", END)
        workflow.add_edge("run_chat", END)
        workflow.add_edge("run_insight", END)

        return workflow.compile()

    @property
    def graph(self):
        return self._graph

    # -- entry points --------------------------------------------------------

    @staticmethod
    def initial_state(user_id: str, message: str, conversation_id: str | None = None) -> dict:
        return {
            "user_id": user_id,
            "message": message,
            "conversation_id": conversation_id,
            "context_updated": False,
        }

    @staticmethod
    def to_result(state: dict) -> OrchestrationResult:
        return OrchestrationResult(
            route=state["route"],
            response=state.get("response", ""),
            conversation_id=state.get("conversation_id"),
            context_updated=state.get("context_updated", False),
        )

    async def orchestrate(
        self, user_id: str, message: str, conversation_id: str | None = None
    ) -> OrchestrationResult:
        result = await self._graph.ainvoke(self.initial_state(user_id, message, conversation_id))
        return self.to_result(result)

    async def restart_onboarding(self, user_id: str) -> OrchestrationResult:
        """Throw away any interview progress and greet the user from ``intro``."""
        await self._onboarding.reset(user_id)
        # A fresh intro record keeps already-onboarded users on the onboarding route.
        await self._onboarding.get_state(user_id)
        return await self.orchestrate(user_id, RESTART_MESSAGE)
