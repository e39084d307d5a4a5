from datetime import UTC, date, datetime

from household_finance import clock
from household_finance.assistant.agents.chat import build_chat_prompt
from household_finance.assistant.agents.onboarding import build_onboarding_prompt
from household_finance.config import settings
from household_finance.context.schemas import UserContext
from household_finance.onboarding.schemas import OnboardingState

# 20:00 UTC on 30 June is already 1 July in Sydney and still 30 June in Los Angeles.
EVENING_UTC = datetime(2024, 6, 30, 20, 0, tzinfo=UTC)


def test_today_uses_the_household_timezone(monkeypatch):
    monkeypatch.setattr(settings, "timezone", "Australia/Sydney")

    assert clock.today(EVENING_UTC) == date(2024, 7, 1)


def test_today_follows_the_configured_zone(monkeypatch):
    monkeypatch.setattr(settings, "timezone", "America/Los_Angeles")

    assert clock.today(EVENING_UTC) == date(2024, 6, 30)


def test_prompts_take_their_date_from_the_household_clock(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda now=None: date(2024, 7, 1))

    assert "01 July 2024" in build_chat_prompt(UserContext())
    assert "01 July 2024" in build_onboarding_prompt(OnboardingState())
