"""
Sanitizer
Turn raw financial records into coarse, non-identifying aggregates.

Privacy mechanisms:
1. Amount bucketing: every amount snaps to a multiple of 5, 10 or 50
   depending on magnitude, so exact figures cannot be fingerprinted
2. Time bucketing: dates collapse to a month and a week-of-month
3. Aggregation: per-period and per-category totals instead of entries
4. Label substitution: goals become "Goal 1", "Goal 2", ...

Rounding is applied after aggregation: each total and each category sum
is bucketed independently from the raw sums, never from rounded entries.
"""

import math
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, localcontext

from ledgercloak.dates import parse_local_date
from ledgercloak.models import (
    Budget,
    Debt,
    Goal,
    SanitizedAIContext,
    SanitizedBudget,
    SanitizedDebt,
    SanitizedFinancialSummary,
    SanitizedGoal,
    SanitizedTransaction,
    Transaction,
    TransactionType,
)

RECENT_WINDOW_DAYS = 30

_HALF = Decimal("0.5")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Go through str so 0.1 is 0.1, not its binary expansion
        return Decimal(str(value))
    return Decimal(value)


def round_amount(amount) -> int:
    """
    Bucket an amount by magnitude, preserving its sign.

    |amount| < 100   -> nearest 5
    |amount| < 1000  -> nearest 10
    otherwise        -> nearest 50

    Halves round away from zero (47.5 -> 50, -47.5 -> -50).
    """
    value = _to_decimal(amount)
    magnitude = abs(value)

    if magnitude < 100:
        step = 5
    elif magnitude < 1000:
        step = 10
    else:
        step = 50

    with localcontext() as ctx:
        # Enough digits that the quotient keeps its whole integer part
        ctx.prec = max(ctx.prec, magnitude.adjusted() + 10)
        buckets = (magnitude / step).to_integral_value(rounding=ROUND_HALF_UP)
    rounded = int(buckets) * step
    return -rounded if value < 0 else rounded


def round_half_up(value) -> int:
    """Round to the nearest integer, .5 going toward +infinity."""
    return int((_to_decimal(value) + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def _percent(part: Decimal, whole: Decimal) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def date_to_period(value: str, today: date | None = None) -> str:
    """Map a date string to its "YYYY-MM" period on the local calendar."""
    d = parse_local_date(value, today)
    return f"{d.year:04d}-{d.month:02d}"


def week_of_period(value: str, today: date | None = None) -> int:
    """Week of the month, 1-5: ceil(day / 7)."""
    return math.ceil(parse_local_date(value, today).day / 7)


def sanitize_transaction(transaction, today: date | None = None) -> SanitizedTransaction:
    t = Transaction.coerce(transaction)
    return SanitizedTransaction(
        type=t.type,
        rounded_amount=round_amount(t.amount),
        category=t.category,
        period=date_to_period(t.date, today),
        week_of_period=week_of_period(t.date, today),
    )


def sanitize_transactions(transactions: Iterable, today: date | None = None) -> list[SanitizedTransaction]:
    return [sanitize_transaction(t, today) for t in transactions]


def generate_financial_summary(
    transactions: Iterable, period: str, today: date | None = None
) -> SanitizedFinancialSummary:
    """
    Aggregate one period's transactions into rounded totals.

    Expenses are summed with their stored sign. Net savings is rounded
    from the raw income and expense sums.

    Args:
        transactions: Raw transactions (models or mappings), any period.
        period: "YYYY-MM" to summarize.

    Returns:
        The period summary. Category maps only hold categories seen in
        that period.
    """
    in_period = [
        t for t in map(Transaction.coerce, transactions)
        if date_to_period(t.date, today) == period
    ]

    income = Decimal(0)
    expenses = Decimal(0)
    spending: dict[str, Decimal] = {}
    earning: dict[str, Decimal] = {}

    for t in in_period:
        if t.type == TransactionType.EXPENSE:
            expenses += t.amount
            spending[t.category] = spending.get(t.category, Decimal(0)) + t.amount
        else:
            income += t.amount
            earning[t.category] = earning.get(t.category, Decimal(0)) + t.amount

    return SanitizedFinancialSummary(
        period=period,
        total_income=round_amount(income),
        total_expenses=round_amount(expenses),
        net_savings=round_amount(income - expenses),
        spending_by_category={cat: round_amount(v) for cat, v in spending.items()},
        income_by_category={cat: round_amount(v) for cat, v in earning.items()},
        transaction_count=len(in_period),
    )


def sanitize_budget(budget, spent) -> SanitizedBudget:
    """percentUsed is 0 when the limit is zero or negative."""
    b = Budget.coerce(budget)
    spent = _to_decimal(spent)
    return SanitizedBudget(
        category=b.category,
        limit=round_amount(b.limit),
        spent=round_amount(spent),
        percent_used=_percent(spent, b.limit),
        period=b.period,
    )


def sanitize_goal(goal, index: int, today: date | None = None) -> SanitizedGoal:
    """
    Sanitize a goal, replacing any name with its position.

    Months remaining counts calendar months only (day of month ignored)
    and never goes below zero for past target dates.
    """
    g = Goal.coerce(goal)
    today = today or date.today()
    target = parse_local_date(g.target_date, today)
    months = (target.year - today.year) * 12 + (target.month - today.month)

    return SanitizedGoal(
        label=f"Goal {index + 1}",
        target_amount=round_amount(g.target_amount),
        current_amount=round_amount(g.current_amount),
        percent_complete=_percent(g.current_amount, g.target_amount),
        months_remaining=max(0, months),
    )


def sanitize_debt(debt) -> SanitizedDebt:
    d = Debt.coerce(debt)
    return SanitizedDebt(
        type=d.type,
        balance=round_amount(d.balance),
        interest_rate=d.interest_rate,
        minimum_payment=round_amount(d.minimum_payment),
    )


def previous_period_of(today: date) -> str:
    last_of_previous = today.replace(day=1) - timedelta(days=1)
    return f"{last_of_previous.year:04d}-{last_of_previous.month:02d}"


def sanitize_prompt_context(
    transactions: Iterable,
    budgets: Iterable,
    goals: Iterable,
    debts: Iterable,
    currency_symbol: str,
    today: date | None = None,
) -> SanitizedAIContext:
    """
    Build the full sanitized context anchored at `today`.

    - current period: today's month; previous period: the month before
    - recent transactions: dated on or after today - 30 days
    - budget spend: current-period expenses in the budget's category
    """
    today = today or date.today()
    transactions = [Transaction.coerce(t) for t in transactions]
    budgets = [Budget.coerce(b) for b in budgets]

    current_period = f"{today.year:04d}-{today.month:02d}"
    previous_period = previous_period_of(today)

    spent_by_category: dict[str, Decimal] = {}
    for t in transactions:
        if t.type == TransactionType.EXPENSE and date_to_period(t.date, today) == current_period:
            spent_by_category[t.category] = spent_by_category.get(t.category, Decimal(0)) + t.amount

    window_start = today - timedelta(days=RECENT_WINDOW_DAYS)
    recent = [t for t in transactions if parse_local_date(t.date, today) >= window_start]

    return SanitizedAIContext(
        current_period=generate_financial_summary(transactions, current_period, today),
        previous_period=generate_financial_summary(transactions, previous_period, today),
        recent_transactions=sanitize_transactions(recent, today),
        budgets=[
            sanitize_budget(b, spent_by_category.get(b.category, Decimal(0)))
            for b in budgets
        ],
        goals=[sanitize_goal(g, i, today) for i, g in enumerate(goals)],
        debts=[sanitize_debt(d) for d in debts],
        currency_symbol=currency_symbol,
    )
