"""Field-by-field mutation rules for a stored ``UserContext``.

Each field declares which actions it supports. List fields accept ``set``,
``append`` and ``remove``; ``spending_targets`` and ``context_narrative`` only
accept ``set``. Anything else is rejected with a ``ValidationError``.
"""

from dataclasses import dataclass
from typing import Any

import pydantic
from pydantic import BaseModel, TypeAdapter

from household_finance.context.models import ContextField, UpdateAction
from household_finance.context.schemas import (
    ContextUpdate,
    DeliberateTradeoff,
    HouseholdMember,
    NonNegotiable,
    SeasonalPattern,
    SpendingTargets,
    UserContext,
    WatchPattern,
)
from household_finance.exceptions import ValidationError

# Accepted on every list field in addition to the field's own match key.
ITEM_ALIAS = "item"


@dataclass(frozen=True)
class ListFieldRule:
    element: type[BaseModel]
    match_key: str


@dataclass(frozen=True)
class ValueFieldRule:
    value_type: Any


LIST_FIELDS: dict[ContextField, ListFieldRule] = {
    ContextField.household_members: ListFieldRule(HouseholdMember, "name"),
    ContextField.deliberate_tradeoffs: ListFieldRule(DeliberateTradeoff, "item"),
    ContextField.non_negotiables: ListFieldRule(NonNegotiable, "item"),
    ContextField.watch_patterns: ListFieldRule(WatchPattern, "pattern"),
    ContextField.seasonal_patterns: ListFieldRule(SeasonalPattern, "note"),
}

VALUE_FIELDS: dict[ContextField, ValueFieldRule] = {
    ContextField.spending_targets: ValueFieldRule(SpendingTargets),
    ContextField.context_narrative: ValueFieldRule(str),
}


def _validate(value_type: Any, value: Any, field: ContextField) -> Any:
    try:
        return TypeAdapter(value_type).validate_python(value)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid value for '{field}': {exc.errors()[0]['msg']}") from exc


def _remove(items: list[BaseModel], rule: ListFieldRule, value: Any, field: ContextField) -> list:
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < len(items):
            raise ValidationError(
                f"Index {value} is out of range for '{field}' ({len(items)} entries)"
            )
        return items[:value] + items[value + 1 :]

    if isinstance(value, dict):
        for key in (rule.match_key, ITEM_ALIAS):
            if key in value:
                target = value[key]
                attr = rule.match_key
                return [entry for entry in items if getattr(entry, attr) != target]

    raise ValidationError(
        f"Remove on '{field}' needs an index or an object with '{rule.match_key}'"
    )


def apply_update(context: UserContext, update: ContextUpdate) -> UserContext:
    """Return a new context with ``update`` applied; ``context`` is left untouched."""
    field = ContextField(update.field)
    action = UpdateAction(update.action)
    current = getattr(context, field)

    if field in VALUE_FIELDS:
        if action is not UpdateAction.set:
            raise ValidationError(f"'{field}' only supports the 'set' action, got '{action}'")
        new_value = _validate(VALUE_FIELDS[field].value_type, update.value, field)
        return context.model_copy(update={field.value: new_value}, deep=True)

    rule = LIST_FIELDS[field]
    match action:
        case UpdateAction.set:
            new_value = _validate(list[rule.element], update.value, field)
        case UpdateAction.append:
            new_value = [*current, _validate(rule.element, update.value, field)]
        case UpdateAction.remove:
            new_value = _remove(list(current), rule, update.value, field)

    return context.model_copy(update={field.value: new_value}, deep=True)
