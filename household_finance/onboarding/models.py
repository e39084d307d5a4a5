from enum import StrEnum


class OnboardingPhase(StrEnum):
    intro = "intro"
    household = "household"
    groceries = "groceries"
    transport = "transport"
    subscriptions = "subscriptions"
    bnpl = "bnpl"
    lifestyle = "lifestyle"
    synthesis = "synthesis"
    complete = "complete"


PHASE_ORDER: tuple[OnboardingPhase, ...] = tuple(OnboardingPhase)


def next_phase_after(phase: OnboardingPhase) -> OnboardingPhase | None:
    index = PHASE_ORDER.index(phase)
    if index + 1 >= len(PHASE_ORDER):
        return None
    return PHASE_ORDER[index + 1]
