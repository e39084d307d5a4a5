from pydantic import BaseModel, Field

from household_finance.onboarding.models import OnboardingPhase


class OnboardingState(BaseModel):
    phase: OnboardingPhase = OnboardingPhase.intro
    gathered_context: dict = Field(default_factory=dict)
    questions_asked: list[str] = Field(default_factory=list)
    conversation_id: str | None = None
