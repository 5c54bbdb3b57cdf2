"""
Cloak — The Release Gate
Nothing reaches the AI context builder without passing through here.

Flow for releasing data:
1. Sanitize raw records into rounded, bucketed aggregates
2. Serialize to the wire shape the consumer receives
3. Walk every key at every depth against the forbidden-field set
4. Only then hand the context (or its prompt text) onward

Step 3 is not an optional self-check. It is the last line of defense
against a sanitizer regression, and a hit aborts the release outright.
"""

import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ledgercloak.config import get_settings
from ledgercloak.exceptions import SanitizationBreach
from ledgercloak.logging_setup import get_logger
from ledgercloak.models import SanitizedAIContext
from ledgercloak.prompt import format_context_for_prompt
from ledgercloak.sanitize import sanitize_prompt_context

# Keys that identify a person or a specific record.
# Must stay identical across every implementation of the consumer contract.
FORBIDDEN_FIELDS = frozenset({
    "id",
    "description",
    "note",
    "notes",
    "importHash",
    "recurringTransactionId",
    "linkedGoalId",
    "linkedDebtId",
    "createdAt",
    "name",
    "email",
    "accountName",
    "merchantName",
})

_LEAF_TYPES = (str, bytes, int, float, Decimal, date, Enum)

log = get_logger(__name__)


def _join(path: str, part: str) -> str:
    return f"{path}.{part}" if path else part


def _fields_of(value: Any) -> Mapping | None:
    """Key/value view of an object-shaped value, or None for a leaf."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {to_camel(f.name): getattr(value, f.name) for f in dataclasses.fields(value)}
    if value is None or isinstance(value, (_LEAF_TYPES, type)):
        return None
    if hasattr(value, "__dict__"):
        return {to_camel(k): v for k, v in vars(value).items()}
    return None


def validate_sanitized_data(value: Any, path: str = "") -> None:
    """
    Recursively reject any forbidden key.

    Mappings have every key checked before their values are walked.
    Lists and tuples are walked element by element. Objects are checked
    through their field names: sanitized records via their to_dict() wire
    form, pydantic models by alias, and dataclasses and other objects by
    their attribute names in camelCase. Scalars always pass.

    Raises:
        SanitizationBreach: On the first forbidden key found.
    """
    if not isinstance(value, (Mapping, list, tuple)):
        fields = _fields_of(value)
        if fields is None:
            return
        value = fields

    if isinstance(value, Mapping):
        for key in value:
            if key in FORBIDDEN_FIELDS:
                raise SanitizationBreach(key, _join(path, str(key)))
        for key, item in value.items():
            validate_sanitized_data(item, _join(path, str(key)))
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            validate_sanitized_data(item, f"{path}[{i}]")


def build_ai_context(
    transactions: Iterable,
    budgets: Iterable = (),
    goals: Iterable = (),
    debts: Iterable = (),
    currency_symbol: str | None = None,
    today: date | None = None,
) -> SanitizedAIContext:
    """
    Sanitize raw records and gate the result.

    Args:
        transactions, budgets, goals, debts: Raw records (models or mappings).
        currency_symbol: Defaults to the configured symbol.
        today: Anchor date for periods and the recent window.

    Returns:
        A context proven free of forbidden fields.

    Raises:
        SanitizationBreach: If any forbidden key survived sanitization.
    """
    if currency_symbol is None:
        currency_symbol = get_settings().currency_symbol

    context = sanitize_prompt_context(
        transactions, budgets, goals, debts, currency_symbol, today=today,
    )
    try:
        validate_sanitized_data(context.to_dict())
    except SanitizationBreach as e:
        log.error("sanitization_breach", field=e.field, path=e.path)
        raise

    log.info(
        "ai_context_released",
        period=context.current_period.period,
        recent_transactions=len(context.recent_transactions),
        budgets=len(context.budgets),
        goals=len(context.goals),
        debts=len(context.debts),
    )
    return context


def prepare_prompt(
    transactions: Iterable,
    budgets: Iterable = (),
    goals: Iterable = (),
    debts: Iterable = (),
    currency_symbol: str | None = None,
    today: date | None = None,
) -> str:
    """Gate the records, then render the prompt text."""
    context = build_ai_context(
        transactions, budgets, goals, debts, currency_symbol, today=today,
    )
    return format_context_for_prompt(context)
