"""
Prompt Formatter
Render a sanitized context as plain text for the AI context builder.

Deterministic and total: the same context always yields the same text,
and any fully sanitized context renders without error.
"""

from decimal import Decimal

from ledgercloak.models import SanitizedAIContext

WARNING_THRESHOLD = 80
OVER_THRESHOLD = 100


def _budget_status(percent_used: int) -> str:
    if percent_used >= OVER_THRESHOLD:
        return "⚠️ OVER"
    if percent_used >= WARNING_THRESHOLD:
        return "⚠️ WARNING"
    return "✓"


def _rate(value: float) -> str:
    # Shortest round-trip digits, plain notation, no trailing ".0"
    return format(Decimal(repr(value)).normalize(), "f")


def format_context_for_prompt(context: SanitizedAIContext) -> str:
    """
    Render the context.

    Section order: summary, spending by category (largest first), budgets,
    goals, debts. Empty sections are left out entirely.
    """
    sym = context.currency_symbol
    curr = context.current_period
    lines = [
        f"=== Financial Summary ({curr.period}) ===",
        f"Income: {sym}{curr.total_income:,}",
        f"Expenses: {sym}{curr.total_expenses:,}",
        f"Net: {sym}{curr.net_savings:,}",
        f"Transactions: {curr.transaction_count}",
    ]

    if curr.spending_by_category:
        lines.append("\nSpending by Category:")
        # sorted() is stable, so equal amounts keep insertion order
        ranked = sorted(curr.spending_by_category.items(), key=lambda kv: kv[1], reverse=True)
        for category, amount in ranked:
            lines.append(f"  - {category}: {sym}{amount:,}")

    if context.budgets:
        lines.append("\n=== Budget Status ===")
        for b in context.budgets:
            lines.append(
                f"  {b.category}: {b.percent_used}% used "
                f"({sym}{b.spent}/{sym}{b.limit}) {_budget_status(b.percent_used)}"
            )

    if context.goals:
        lines.append("\n=== Goals ===")
        for g in context.goals:
            lines.append(
                f"  {g.label}: {g.percent_complete}% complete, "
                f"{g.months_remaining} months remaining"
            )

    if context.debts:
        lines.append("\n=== Debts ===")
        for d in context.debts:
            lines.append(f"  {d.type.value}: {sym}{d.balance:,} at {_rate(d.interest_rate)}% APR")

    return "\n".join(lines)
