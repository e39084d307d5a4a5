"""Interview progress for the onboarding conversation.

The machine only moves forward, one phase at a time:

  intro -> household -> groceries -> transport -> subscriptions
        -> bnpl -> lifestyle -> synthesis -> complete

``complete`` is reached only through ``finalize``, and only from ``synthesis``.
"""

from household_finance.context.schemas import UserContext
from household_finance.exceptions import InvalidTransitionError
from household_finance.onboarding.models import OnboardingPhase, next_phase_after
from household_finance.onboarding.schemas import OnboardingState


class OnboardingStateMachine:
    def __init__(self, state: OnboardingState) -> None:
        self._state = state.model_copy(deep=True)

    @property
    def state(self) -> OnboardingState:
        return self._state

    @property
    def phase(self) -> OnboardingPhase:
        return self._state.phase

    @property
    def is_complete(self) -> bool:
        return self._state.phase is OnboardingPhase.complete

    def transition(
        self,
        next_phase: OnboardingPhase | str,
        gathered: dict | None = None,
        question_asked: str | None = None,
    ) -> OnboardingState:
        try:
            target = OnboardingPhase(next_phase)
        except ValueError:
            raise InvalidTransitionError(f"Unknown onboarding phase: '{next_phase}'") from None

        if self.is_complete:
            raise InvalidTransitionError("Onboarding is already complete")

        if target is OnboardingPhase.complete:
            raise InvalidTransitionError(
                "Use complete_onboarding to finish; transition_phase cannot reach 'complete'"
            )

        expected = next_phase_after(self.phase)
        if target is not expected:
            raise InvalidTransitionError(
                f"Cannot move from '{self.phase}' to '{target}'; the next phase is '{expected}'"
            )

        self._state.phase = target
        self._state.gathered_context.update(gathered or {})
        if question_asked and question_asked not in self._state.questions_asked:
            self._state.questions_asked.append(question_asked)
        return self._state

    def finalize(self, context: UserContext) -> OnboardingState:
        if self.phase not in (OnboardingPhase.synthesis, OnboardingPhase.complete):
            raise InvalidTransitionError(
                f"Onboarding can only be completed from 'synthesis', not '{self.phase}'"
            )

        self._state.phase = OnboardingPhase.complete
        self._state.gathered_context = context.model_dump(mode="json")
        return self._state
