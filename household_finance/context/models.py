from enum import StrEnum


class ContextField(StrEnum):
    household_members = "household_members"
    deliberate_tradeoffs = "deliberate_tradeoffs"
    non_negotiables = "non_negotiables"
    watch_patterns = "watch_patterns"
    seasonal_patterns = "seasonal_patterns"
    spending_targets = "spending_targets"
    context_narrative = "context_narrative"


class UpdateAction(StrEnum):
    set = "set"
    append = "append"
    remove = "remove"


DEFAULT_DISCRETIONARY_PCT = 35.0
