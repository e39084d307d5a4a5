import json

import structlog

from household_finance.onboarding.models import OnboardingPhase
from household_finance.onboarding.repository import OnboardingRepository
from household_finance.onboarding.schemas import OnboardingState

logger = structlog.get_logger()


def _load_json(raw: str | None, default, user_id: str, column: str):
    if not raw:
        return default
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("onboarding_column_malformed", user_id=user_id, column=column)
        return default
    return value if isinstance(value, type(default)) else default


class OnboardingService:
    def __init__(self, repo: OnboardingRepository) -> None:
        self._repo = repo

    async def get_state(self, user_id: str, conversation_id: str | None = None) -> OnboardingState:
        """Load the interview state, starting a fresh one at ``intro`` if none exists."""
        row = await self._repo.get(user_id)
        if row is None:
            state = OnboardingState(conversation_id=conversation_id)
            await self.save_state(user_id, state)
            logger.info("onboarding_started", user_id=user_id)
            return state

        try:
            phase = OnboardingPhase(row["phase"])
        except ValueError:
            logger.warning("onboarding_phase_unrecognized", user_id=user_id, phase=row["phase"])
            phase = OnboardingPhase.intro

        return OnboardingState(
            phase=phase,
            gathered_context=_load_json(row["gathered_context"], {}, user_id, "gathered_context"),
            questions_asked=_load_json(row["questions_asked"], [], user_id, "questions_asked"),
            conversation_id=row["conversation_id"] or conversation_id,
        )

    async def save_state(self, user_id: str, state: OnboardingState) -> None:
        await self._repo.upsert(
            user_id,
            state.conversation_id,
            str(state.phase),
            state.gathered_context,
            state.questions_asked,
        )
        logger.info("onboarding_state_saved", user_id=user_id, phase=str(state.phase))

    async def get_phase(self, user_id: str) -> OnboardingPhase | None:
        raw = await self._repo.get_phase(user_id)
        if raw is None:
            return None
        try:
            return OnboardingPhase(raw)
        except ValueError:
            return OnboardingPhase.intro

    async def reset(self, user_id: str) -> None:
        await self._repo.delete(user_id)
        logger.info("onboarding_reset", user_id=user_id)
