import json

import aiosqlite
import pydantic
import structlog

from household_finance.context.policy import apply_update
from household_finance.context.repository import ContextRepository
from household_finance.context.schemas import ContextUpdate, UserContext
from household_finance.exceptions import AppError

logger = structlog.get_logger()


class ContextService:
    """Per-user financial context.

    Updates are read-modify-write without locking: two concurrent writers for
    the same user can lose one of the updates.
    """

    def __init__(self, repo: ContextRepository) -> None:
        self._repo = repo

    async def _load(self, user_id: str) -> UserContext:
        row = await self._repo.get(user_id)
        if row is None:
            return UserContext()

        fields = {
            key: value
            for key, value in row.items()
            if key in UserContext.model_fields and value is not None
        }
        return UserContext.model_validate(fields)

    async def get_user_context(self, user_id: str) -> UserContext:
        """Stored context, or the default when the row is missing or unreadable."""
        try:
            return await self._load(user_id)
        except (aiosqlite.Error, json.JSONDecodeError, pydantic.ValidationError) as exc:
            logger.warning("user_context_unreadable", user_id=user_id, error=str(exc))
            return UserContext()

    async def _load_for_update(self, user_id: str) -> UserContext:
        """Stored context for a read-modify-write; never falls back to the default."""
        try:
            return await self._load(user_id)
        except (aiosqlite.Error, json.JSONDecodeError, pydantic.ValidationError) as exc:
            logger.error("user_context_update_refused", user_id=user_id, error=str(exc))
            raise AppError("Stored context is unreadable", code="CONTEXT_UNREADABLE") from exc

    async def save_user_context(self, user_id: str, context: UserContext) -> UserContext:
        """Persist a complete context and mark onboarding as finished."""
        await self._repo.upsert(user_id, context.model_dump(mode="json"), onboarding_complete=True)
        logger.info("user_context_saved", user_id=user_id)
        return context

    async def update_user_context(self, user_id: str, update: ContextUpdate) -> UserContext:
        current = await self._load_for_update(user_id)
        updated = apply_update(current, update)
        await self._repo.upsert(user_id, updated.model_dump(mode="json"))
        logger.info(
            "user_context_updated",
            user_id=user_id,
            field=str(update.field),
            action=str(update.action),
        )
        return updated

    async def is_onboarding_complete(self, user_id: str) -> bool:
        return await self._repo.is_onboarding_complete(user_id)

    async def needs_onboarding(self, user_id: str) -> bool:
        return not await self.is_onboarding_complete(user_id)
