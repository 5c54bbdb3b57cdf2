"""
Data Model
Raw financial records (input) and their sanitized forms (output).

Raw records are pydantic models. They accept snake_case or camelCase keys
and silently drop anything they do not declare, so upstream fields such
as ids, notes, or merchant names never make it past construction.

Sanitized records are frozen dataclasses. Their to_dict() produces the
exact wire shape handed to the untrusted consumer (camelCase keys); that
wire shape is what the forbidden-field gate checks.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class DebtType(str, Enum):
    CREDIT_CARD = "credit-card"
    LOAN = "loan"
    MORTGAGE = "mortgage"
    OTHER = "other"


# =============================================================================
# RAW RECORDS
# =============================================================================

class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def coerce(cls, value: Any):
        """Accept an instance as-is, or validate a mapping into one."""
        if isinstance(value, cls):
            return value
        return cls.model_validate(value)


class Transaction(_Record):
    """A single income or expense entry. `date` is a calendar date string."""
    type: TransactionType
    amount: Decimal
    category: str
    date: str


class Budget(_Record):
    category: str
    limit: Decimal
    period: BudgetPeriod


class Goal(_Record):
    target_amount: Decimal
    current_amount: Decimal
    target_date: str


class Debt(_Record):
    type: DebtType
    balance: Decimal
    interest_rate: float
    minimum_payment: Decimal


# =============================================================================
# SANITIZED RECORDS
# =============================================================================

@dataclass(frozen=True)
class SanitizedTransaction:
    type: TransactionType
    rounded_amount: int
    category: str
    period: str             # YYYY-MM
    week_of_period: int     # 1-5

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "roundedAmount": self.rounded_amount,
            "category": self.category,
            "period": self.period,
            "weekOfPeriod": self.week_of_period,
        }


@dataclass(frozen=True)
class SanitizedFinancialSummary:
    period: str
    total_income: int
    total_expenses: int
    net_savings: int
    spending_by_category: dict[str, int] = field(default_factory=dict)
    income_by_category: dict[str, int] = field(default_factory=dict)
    transaction_count: int = 0

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "totalIncome": self.total_income,
            "totalExpenses": self.total_expenses,
            "netSavings": self.net_savings,
            "spendingByCategory": dict(self.spending_by_category),
            "incomeByCategory": dict(self.income_by_category),
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True)
class SanitizedBudget:
    category: str
    limit: int
    spent: int
    percent_used: int
    period: BudgetPeriod

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "limit": self.limit,
            "spent": self.spent,
            "percentUsed": self.percent_used,
            "period": self.period.value,
        }


@dataclass(frozen=True)
class SanitizedGoal:
    label: str              # "Goal N", never the user's own name for it
    target_amount: int
    current_amount: int
    percent_complete: int
    months_remaining: int

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "targetAmount": self.target_amount,
            "currentAmount": self.current_amount,
            "percentComplete": self.percent_complete,
            "monthsRemaining": self.months_remaining,
        }


@dataclass(frozen=True)
class SanitizedDebt:
    type: DebtType
    balance: int
    interest_rate: float
    minimum_payment: int

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "balance": self.balance,
            "interestRate": self.interest_rate,
            "minimumPayment": self.minimum_payment,
        }


@dataclass(frozen=True)
class SanitizedAIContext:
    """Everything the AI context builder is allowed to see."""
    current_period: SanitizedFinancialSummary
    previous_period: SanitizedFinancialSummary | None
    recent_transactions: list[SanitizedTransaction]
    budgets: list[SanitizedBudget]
    goals: list[SanitizedGoal]
    debts: list[SanitizedDebt]
    currency_symbol: str

    def to_dict(self) -> dict:
        return {
            "currentPeriod": self.current_period.to_dict(),
            "previousPeriod": self.previous_period.to_dict() if self.previous_period else None,
            "recentTransactions": [t.to_dict() for t in self.recent_transactions],
            "budgets": [b.to_dict() for b in self.budgets],
            "goals": [g.to_dict() for g in self.goals],
            "debts": [d.to_dict() for d in self.debts],
            "currencySymbol": self.currency_symbol,
        }
