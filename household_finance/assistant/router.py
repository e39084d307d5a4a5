"""Assistant API endpoints: routed chat, streaming chat and onboarding status."""

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from household_finance.assistant.schemas import ChatRequest, OrchestrationResult, StatusResponse
from household_finance.dependencies import AssistantServiceDep, ContextServiceDep, CurrentUser

router = APIRouter()


@router.post("/chat", response_model=OrchestrationResult)
async def chat(
    request: ChatRequest,
    service: AssistantServiceDep,
    user_id: CurrentUser,
) -> OrchestrationResult:
    """Route a message to the onboarding, chat or insight agent and return its answer."""
    return await service.chat(user_id, request)


@router.post("/chat/stream", response_class=EventSourceResponse)
async def chat_stream(
    request: ChatRequest,
    service: AssistantServiceDep,
    user_id: CurrentUser,
) -> EventSourceResponse:
    """Stream routing progress and the final answer via Server-Sent Events."""
    return EventSourceResponse(service.chat_stream(user_id, request))


@router.get("/status", response_model=StatusResponse)
async def status(context: ContextServiceDep, user_id: CurrentUser) -> StatusResponse:
    return StatusResponse(needs_onboarding=await context.needs_onboarding(user_id))


@router.post("/onboarding/restart", response_model=OrchestrationResult)
async def restart_onboarding(
    service: AssistantServiceDep,
    user_id: CurrentUser,
) -> OrchestrationResult:
    return await service.restart_onboarding(user_id)
