import pytest

from household_finance.context.schemas import UserContext
from household_finance.exceptions import InvalidTransitionError, ValidationError
from household_finance.onboarding.models import PHASE_ORDER, OnboardingPhase, next_phase_after
from household_finance.onboarding.schemas import OnboardingState
from household_finance.onboarding.state_machine import OnboardingStateMachine

from conftest import USER_ID


def _at(phase: OnboardingPhase) -> OnboardingStateMachine:
    return OnboardingStateMachine(OnboardingState(phase=phase))


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


def test_phase_order_ends_in_complete():
    assert PHASE_ORDER[0] is OnboardingPhase.intro
    assert PHASE_ORDER[-1] is OnboardingPhase.complete
    assert len(PHASE_ORDER) == 9
    assert next_phase_after(OnboardingPhase.complete) is None


def test_walks_every_phase_in_order():
    machine = _at(OnboardingPhase.intro)

    for phase in PHASE_ORDER[1:-1]:
        machine.transition(phase, {})

    assert machine.phase is OnboardingPhase.synthesis
    machine.finalize(UserContext(context_narrative="done"))
    assert machine.is_complete


def test_transition_merges_gathered_and_records_question():
    machine = _at(OnboardingPhase.intro)

    machine.transition("household", {"members": 2}, "Who lives with you?")
    machine.transition("groceries", {"meal_kits": True}, "Who lives with you?")

    assert machine.state.gathered_context == {"members": 2, "meal_kits": True}
    assert machine.state.questions_asked == ["Who lives with you?"]


def test_later_gathered_values_overwrite_earlier_keys():
    machine = _at(OnboardingPhase.intro)

    machine.transition("household", {"members": 2})
    machine.transition("groceries", {"members": 3})

    assert machine.state.gathered_context == {"members": 3}


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (OnboardingPhase.intro, OnboardingPhase.groceries),
        (OnboardingPhase.transport, OnboardingPhase.household),
        (OnboardingPhase.transport, OnboardingPhase.transport),
        (OnboardingPhase.lifestyle, OnboardingPhase.intro),
    ],
)
def test_rejects_skips_and_backwards_moves(current, target):
    machine = _at(current)

    with pytest.raises(InvalidTransitionError):
        machine.transition(target, {"ignored": True})

    assert machine.phase is current
    assert machine.state.gathered_context == {}


def test_complete_is_not_reachable_by_transition():
    with pytest.raises(InvalidTransitionError, match="complete_onboarding"):
        _at(OnboardingPhase.synthesis).transition(OnboardingPhase.complete, {})


def test_complete_is_terminal():
    with pytest.raises(InvalidTransitionError, match="already complete"):
        _at(OnboardingPhase.complete).transition(OnboardingPhase.household, {})


def test_unknown_phase_is_rejected():
    with pytest.raises(InvalidTransitionError, match="Unknown onboarding phase"):
        _at(OnboardingPhase.intro).transition("retirement", {})


def test_invalid_transition_is_a_validation_error():
    assert issubclass(InvalidTransitionError, ValidationError)


def test_finalize_only_from_synthesis():
    with pytest.raises(InvalidTransitionError):
        _at(OnboardingPhase.lifestyle).finalize(UserContext())


def test_finalize_replaces_gathered_with_full_context():
    machine = _at(OnboardingPhase.synthesis)
    machine.state.gathered_context["partial"] = True
    context = UserContext(context_narrative="Two adults, one dog.")

    state = machine.finalize(context)

    assert state.phase is OnboardingPhase.complete
    assert state.gathered_context == context.model_dump(mode="json")


def test_finalize_is_idempotent_once_complete():
    machine = _at(OnboardingPhase.synthesis)
    machine.finalize(UserContext())

    state = machine.finalize(UserContext(context_narrative="again"))

    assert state.phase is OnboardingPhase.complete
    assert state.gathered_context["context_narrative"] == "again"


def test_machine_does_not_mutate_the_state_it_was_given():
    original = OnboardingState()
    machine = OnboardingStateMachine(original)

    machine.transition("household", {"members": 2})

    assert original.phase is OnboardingPhase.intro
    assert original.gathered_context == {}


# ---------------------------------------------------------------------------
# Onboarding service
# ---------------------------------------------------------------------------


async def test_first_read_creates_intro_state(onboarding_service):
    assert await onboarding_service.get_phase(USER_ID) is None

    state = await onboarding_service.get_state(USER_ID)

    assert state.phase is OnboardingPhase.intro
    assert await onboarding_service.get_phase(USER_ID) is OnboardingPhase.intro


async def test_state_survives_between_reads(onboarding_service):
    machine = OnboardingStateMachine(await onboarding_service.get_state(USER_ID, "conv-1"))
    machine.transition("household", {"members": 2}, "Who's in the house?")
    await onboarding_service.save_state(USER_ID, machine.state)

    state = await onboarding_service.get_state(USER_ID)

    assert state.phase is OnboardingPhase.household
    assert state.gathered_context == {"members": 2}
    assert state.questions_asked == ["Who's in the house?"]
    assert state.conversation_id == "conv-1"


async def test_unrecognised_phase_reads_as_intro(db, onboarding_service):
    await onboarding_service.save_state(
        USER_ID, OnboardingState(phase=OnboardingPhase.bnpl, gathered_context={"zip": True})
    )
    await db.execute("UPDATE onboarding_state SET phase = 'retired' WHERE user_id = ?", (USER_ID,))
    await db.commit()

    state = await onboarding_service.get_state(USER_ID)

    assert state.phase is OnboardingPhase.intro
    assert state.gathered_context == {"zip": True}
    assert await onboarding_service.get_phase(USER_ID) is OnboardingPhase.intro


async def test_malformed_columns_read_as_empty(db, onboarding_service):
    await onboarding_service.get_state(USER_ID)
    await db.execute(
        "UPDATE onboarding_state SET gathered_context = '{oops', questions_asked = '{}' WHERE user_id = ?",
        (USER_ID,),
    )
    await db.commit()

    state = await onboarding_service.get_state(USER_ID)

    assert state.gathered_context == {}
    assert state.questions_asked == []


async def test_reset_removes_progress(onboarding_service):
    await onboarding_service.save_state(USER_ID, OnboardingState(phase=OnboardingPhase.lifestyle))

    await onboarding_service.reset(USER_ID)

    assert await onboarding_service.get_phase(USER_ID) is None
    assert (await onboarding_service.get_state(USER_ID)).phase is OnboardingPhase.intro
