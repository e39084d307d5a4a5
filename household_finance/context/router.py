from fastapi import APIRouter

from household_finance.context.schemas import ContextUpdate, UserContext
from household_finance.dependencies import ContextServiceDep, CurrentUser

router = APIRouter()


@router.get("/", response_model=UserContext)
async def get_context(service: ContextServiceDep, user_id: CurrentUser) -> UserContext:
    return await service.get_user_context(user_id)


@router.patch("/", response_model=UserContext)
async def update_context(
    update: ContextUpdate,
    service: ContextServiceDep,
    user_id: CurrentUser,
) -> UserContext:
    """Apply one set/append/remove operation to a context field."""
    return await service.update_user_context(user_id, update)
