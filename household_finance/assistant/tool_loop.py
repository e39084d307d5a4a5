"""Bounded tool-calling loop shared by the onboarding and chat agents.

Topology:
  START -> call_model --(conditional)--> run_tools | extract_response | fail_closed
               ^                            |
               |____________________________|
  extract_response -> END

The loop is capped at ``max_iterations`` model calls. A model that still
asks for tools when the cap is reached fails closed with ToolLoopLimitError.

Tool calls are executed by langgraph's ``ToolNode``. Arguments are checked
against each tool's schema first, so a malformed call aborts the turn instead
of reaching the model as an error payload.
"""

import json
from collections.abc import Collection, Sequence

import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage
from langchain_core.runnables import RunnableConfig
from langchain_core.tools import BaseTool
from langgraph.graph import END, START, StateGraph
from langgraph.prebuilt import ToolNode
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from household_finance.assistant.schemas import ToolLoopState
from household_finance.config import settings
from household_finance.exceptions import AppError, ToolLoopLimitError

logger = structlog.get_logger()


def message_text(message: BaseMessage | None) -> str:
    """Pull the plain text out of a model message, joining structured blocks."""
    if message is None:
        return ""
    content = message.content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                parts.append(block.get("text", ""))
        content = "\n".join(part for part in parts if part)
    return content.strip() if isinstance(content, str) else str(content)


def _app_error_handler(agent_name: str):
    """Build the tool node's error handler: ``AppError``s go back to the model.

    The tool node reads the handled exception type from the annotation, so
    anything else still propagates out of the loop.
    """

    def handle(exc: AppError) -> str:
        logger.warning("tool_failed", agent=agent_name, code=exc.code, error=exc.message)
        return json.dumps({"error": exc.message})

    return handle


class ToolLoop:
    def __init__(
        self,
        agent_name: str,
        llm: BaseChatModel,
        tools: Sequence[BaseTool],
        mutating_tools: Collection[str] = frozenset(),
        max_iterations: int | None = None,
    ) -> None:
        self._agent = agent_name
        self._tools = {tool.name: tool for tool in tools}
        self._tool_node = ToolNode(list(tools), handle_tool_errors=_app_error_handler(agent_name))
        self._mutating = frozenset(mutating_tools)
        self._max_iterations = max_iterations or settings.max_tool_iterations
        self._llm = llm.bind_tools(list(tools)) if tools else llm
        self._graph = self._build_graph()

    # -- nodes ---------------------------------------------------------------

    async def _call_model(self, state: ToolLoopState) -> dict:
        iteration_count = state.get("iteration_count", 0) + 1
        try:
            response = await self._llm.ainvoke(state["messages"])
        except AppError:
            raise
        except Exception as exc:
            logger.error("llm_call_failed", agent=self._agent, iteration=iteration_count, error=str(exc))
            raise AppError("The language model request failed", code="LLM_ERROR") from exc

        logger.info(
            "llm_called",
            agent=self._agent,
            iteration=iteration_count,
            tool_calls=len(getattr(response, "tool_calls", None) or []),
        )
        return {"messages": [response], "iteration_count": iteration_count}

    def _check_arguments(self, call: dict) -> None:
        tool = self._tools.get(call["name"])
        schema = getattr(tool, "args_schema", None)
        if not isinstance(schema, type) or not issubclass(schema, BaseModel):
            return
        try:
            schema.model_validate(call.get("args") or {})
        except PydanticValidationError as exc:
            logger.error("tool_arguments_invalid", agent=self._agent, tool=call["name"], error=str(exc))
            raise AppError(f"Model sent invalid arguments for {call['name']}", code="LLM_ERROR") from exc

    async def _dispatch(self, batch: list[dict], config: RunnableConfig) -> list[ToolMessage]:
        output = await self._tool_node.ainvoke(
            {"messages": [AIMessage(content="", tool_calls=batch)]}, config
        )
        logger.info("tools_executed", agent=self._agent, tools=[call["name"] for call in batch])
        return output["messages"]

    async def _run_tools(self, state: ToolLoopState, config: RunnableConfig) -> dict:
        """Execute the requested tool calls through the tool node.

        Consecutive read-only calls go to the tool node as one batch, which
        runs them concurrently; a mutating call goes alone once every call
        requested before it has finished.
        """
        calls = state["messages"][-1].tool_calls
        for call in calls:
            self._check_arguments(call)

        messages: list[ToolMessage] = []
        pending: list[dict] = []
        for call in calls:
            if call["name"] in self._mutating:
                if pending:
                    messages.extend(await self._dispatch(pending, config))
                    pending = []
                messages.extend(await self._dispatch([call], config))
            else:
                pending.append(call)
        if pending:
            messages.extend(await self._dispatch(pending, config))

        return {"messages": messages}

    async def _fail_closed(self, state: ToolLoopState) -> dict:
        logger.error("tool_loop_limit_reached", agent=self._agent, max_iterations=self._max_iterations)
        raise ToolLoopLimitError(self._agent, self._max_iterations)

    async def _extract_response(self, state: ToolLoopState) -> dict:
        messages = state.get("messages", [])
        return {"response": message_text(messages[-1] if messages else None)}

    # -- routing -------------------------------------------------------------

    def _should_continue(self, state: ToolLoopState) -> str:
        last_message = state["messages"][-1]
        if not isinstance(last_message, AIMessage) or not last_message.tool_calls:
            return "extract_response"
        if state.get("iteration_count", 0) >= self._max_iterations:
            return "fail_closed"
        return "run_tools"

    def _build_graph(self):
        workflow = StateGraph(ToolLoopState)

        workflow.add_node("call_model", self._call_model)
        workflow.add_node("run_tools", self._run_tools)
        workflow.add_node("extract_response", self._extract_response)
        workflow.add_node("fail_closed", self._fail_closed)

        workflow.add_edge(START, "call_model")
        workflow.add_conditional_edges(
            "call_model",
            self._should_continue,
            {
                "run_tools": "run_tools",
                "extract_response": "extract_response",
                "fail_closed": "fail_closed",
            },
        )
        workflow.add_edge("run_tools", "call_model")
        workflow.add_edge("extract_response", END)
        workflow.add_edge("fail_closed", END)

        return workflow.compile()

    async def run(self, messages: list[BaseMessage]) -> str:
        """Drive the model until it answers in plain text and return that text."""
        result = await self._graph.ainvoke(
            {"messages": messages, "iteration_count": 0},
            {"recursion_limit": self._max_iterations * 2 + 5},
        )
        return result.get("response", "")
