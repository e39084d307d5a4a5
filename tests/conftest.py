"""Shared fixtures: an in-memory database, the services on top of it and a
scripted chat model standing in for the LLM provider."""

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from household_finance.auth import create_access_token
from household_finance.config import settings
from household_finance.context.repository import ContextRepository
from household_finance.context.service import ContextService
from household_finance.conversations.repository import ConversationRepository
from household_finance.conversations.service import ConversationService
from household_finance.database import close_database, init_database
from household_finance.insights.repository import InsightRepository
from household_finance.onboarding.repository import OnboardingRepository
from household_finance.onboarding.service import OnboardingService
from household_finance.transactions.repository import TransactionRepository
from household_finance.transactions.schemas import TransactionRecord
from household_finance.transactions.service import LedgerService, TransactionQueryService

USER_ID = "household-1"
OTHER_USER_ID = "household-2"


class ScriptedChatModel:
    """Replays canned ``AIMessage`` responses in order and records every call."""

    def __init__(self, responses=None) -> None:
        self.responses = list(responses or [])
        self.calls: list[list] = []
        self.bound_tools: list[str] = []

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = [tool.name for tool in tools]
        return self

    async def ainvoke(self, messages, config=None, **kwargs):
        self.calls.append(list(messages))
        if not self.responses:
            raise RuntimeError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def tool_call(name: str, args: dict | None = None, call_id: str | None = None) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[{"name": name, "args": args or {}, "id": call_id or f"call_{name}"}],
    )


def tool_calls(*calls: tuple[str, dict]) -> AIMessage:
    return AIMessage(
        content="",
        tool_calls=[
            {"name": name, "args": args, "id": f"call_{i}_{name}"}
            for i, (name, args) in enumerate(calls)
        ],
    )


def reply(text: str) -> AIMessage:
    return AIMessage(content=text)


SAMPLE_TRANSACTIONS = [
    TransactionRecord(
        id="t1",
        date="2024-06-03",
        description="WOOLWORTHS 1234",
        amount=120.50,
        category="Groceries",
        classification="Essential",
        merchant_normalised="Woolworths",
    ),
    TransactionRecord(
        id="t2",
        date="2024-06-05",
        description="UBER EATS",
        amount=45.00,
        category="Dining Out",
        classification="Discretionary",
        merchant_normalised="Uber Eats",
    ),
    TransactionRecord(
        id="t3",
        date="2024-06-05",
        description="SALARY ACME",
        amount=-3000.00,
        category="Income - Salary",
        classification="Income",
        merchant_normalised="Acme",
    ),
    TransactionRecord(
        id="t4",
        date="2024-05-20",
        description="UNKNOWN MERCHANT",
        amount=30.00,
        merchant_normalised="Mystery Shop",
        needs_review=True,
    ),
]


FINAL_CONTEXT = {
    "household_members": [{"name": "Sam", "role": "primary earner", "tendencies": []}],
    "deliberate_tradeoffs": [{"item": "Meal kits", "reasoning": "time over money"}],
    "non_negotiables": [{"item": "Kids swimming", "reason": "safety"}],
    "watch_patterns": [],
    "seasonal_patterns": [],
    "spending_targets": {"discretionary_pct": 30, "specific": {}},
    "context_narrative": "Busy two-parent household trading money for time.",
}


@pytest.fixture
async def db():
    conn = await init_database(":memory:")
    yield conn
    await close_database()


@pytest.fixture
def transaction_repo(db):
    return TransactionRepository(db)


@pytest.fixture
def query_service(transaction_repo):
    return TransactionQueryService(transaction_repo)


@pytest.fixture
def ledger_service(transaction_repo):
    return LedgerService(transaction_repo)


@pytest.fixture
def context_service(db):
    return ContextService(ContextRepository(db))


@pytest.fixture
def onboarding_service(db):
    return OnboardingService(OnboardingRepository(db))


@pytest.fixture
def conversation_service(db):
    return ConversationService(ConversationRepository(db))


@pytest.fixture
def insight_repo(db):
    return InsightRepository(db)


@pytest.fixture
async def seeded(ledger_service):
    await ledger_service.ingest(USER_ID, SAMPLE_TRANSACTIONS)
    return SAMPLE_TRANSACTIONS


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest.fixture
def chat_model():
    return ScriptedChatModel()


@pytest.fixture
def client(tmp_path, monkeypatch, chat_model):
    from household_finance.dependencies import get_chat_llm, get_insight_llm
    from household_finance.main import app

    monkeypatch.setattr(settings, "db_path", str(tmp_path / "test.db"))
    app.dependency_overrides[get_chat_llm] = lambda: chat_model
    app.dependency_overrides[get_insight_llm] = lambda: chat_model

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(USER_ID)}"}
