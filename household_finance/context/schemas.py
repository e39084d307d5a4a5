from typing import Any

from pydantic import BaseModel, Field

from household_finance.context.models import (
    DEFAULT_DISCRETIONARY_PCT,
    ContextField,
    UpdateAction,
)


class HouseholdMember(BaseModel):
    name: str
    role: str
    tendencies: list[str] = Field(default_factory=list)


class AmountRange(BaseModel):
    min: float
    max: float


class DeliberateTradeoff(BaseModel):
    item: str
    reasoning: str
    do_not_flag: bool = True
    amount_range: AmountRange | None = None


class NonNegotiable(BaseModel):
    item: str
    reason: str
    category: str | None = None


class WatchThreshold(BaseModel):
    amount: float | None = None
    count: int | None = None
    period_days: int | None = None


class WatchPattern(BaseModel):
    pattern: str
    description: str
    meaning: str
    action: str
    threshold: WatchThreshold | None = None


class SeasonalPattern(BaseModel):
    months: list[int] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    note: str
    expected_increase_pct: float | None = None

    def applies_to(self, month: int) -> bool:
        return month in self.months


class SpendingTargets(BaseModel):
    discretionary_pct: float = DEFAULT_DISCRETIONARY_PCT
    specific: dict[str, float] = Field(default_factory=dict)


class UserContext(BaseModel):
    """Everything the assistant knows about a household's finances.

    ``UserContext()`` is the default used for users without a stored record.
    """

    household_members: list[HouseholdMember] = Field(default_factory=list)
    deliberate_tradeoffs: list[DeliberateTradeoff] = Field(default_factory=list)
    non_negotiables: list[NonNegotiable] = Field(default_factory=list)
    watch_patterns: list[WatchPattern] = Field(default_factory=list)
    seasonal_patterns: list[SeasonalPattern] = Field(default_factory=list)
    spending_targets: SpendingTargets = Field(default_factory=SpendingTargets)
    context_narrative: str = ""


class ContextUpdate(BaseModel):
    field: ContextField
    action: UpdateAction
    value: Any = None
