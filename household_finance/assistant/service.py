"""Assistant service: a thin wrapper around the orchestrator graph."""

import json
from collections.abc import AsyncGenerator

import structlog

from household_finance.assistant.orchestrator import Orchestrator
from household_finance.assistant.schemas import ChatRequest, OrchestrationResult
from household_finance.exceptions import AppError

logger = structlog.get_logger()


class AssistantService:
    """Provides plain and streaming chat over the orchestrator."""

    def __init__(self, orchestrator: Orchestrator) -> None:
        self._orchestrator = orchestrator

    async def chat(self, user_id: str, request: ChatRequest) -> OrchestrationResult:
        return await self._orchestrator.orchestrate(
            user_id, request.message, request.conversation_id
        )

    async def chat_stream(self, user_id: str, request: ChatRequest) -> AsyncGenerator[dict, None]:
        """SSE streaming chat. Yields a status event as each step of the graph finishes."""
        yield {"event": "status", "data": json.dumps({"step": "starting"})}

        state = Orchestrator.initial_state(user_id, request.message, request.conversation_id)
        try:
            async for update in self._orchestrator.graph.astream(state, stream_mode="updates"):
                for step, values in update.items():
                    state.update(values or {})
                    yield {
                        "event": "status",
                        "data": json.dumps({"step": step, "route": state.get("route")}),
                    }

            result = Orchestrator.to_result(state)
            yield {"event": "response", "data": result.model_dump_json()}
        except AppError as exc:
            logger.error("assistant_stream_error", user_id=user_id, code=exc.code, error=exc.message)
            yield {
                "event": "error",
                "data": json.dumps({"error": exc.code, "message": exc.message}),
            }
        except Exception as exc:
            logger.error("assistant_stream_error", user_id=user_id, error=str(exc))
            yield {
                "event": "error",
                "data": json.dumps(
                    {"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"}
                ),
            }

        yield {"event": "done", "data": ""}

    async def restart_onboarding(self, user_id: str) -> OrchestrationResult:
        logger.info("onboarding_restart_requested", user_id=user_id)
        return await self._orchestrator.restart_onboarding(user_id)
