"""
Report Models

Outputs of the statistics functions. These are derived values only;
nothing here is ever persisted.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field


class CategoryTotal(BaseModel):
    category: str
    total: Decimal
    percentage: float = Field(ge=0.0)


class MonthlyTotal(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    label: str = Field(..., description="Short month name, e.g. 'Jan'")
    total: Decimal


class FinancialOverview(BaseModel):
    """Current month against the previous one."""

    net_income: Decimal
    net_income_trend: float
    income_total: Decimal
    income_trend: float
    expense_total: Decimal
    expense_trend: float
    savings_rate: float = Field(
        ...,
        description="Share of this month's income not spent, in percent"
    )


class BudgetStatus(BaseModel):
    monthly_budget: Decimal
    spent: Decimal
    remaining: Decimal
    percentage_used: float
    is_over_budget: bool


class SavingsStatus(str, Enum):
    ACHIEVED = "achieved"
    ON_TRACK = "on_track"
    HALFWAY = "halfway"
    BEHIND = "behind"


class SavingsState(BaseModel):
    """A user's stored savings figures."""

    current: Decimal = Field(ge=0)
    goal: Decimal = Field(gt=0)


class SavingsProgress(BaseModel):
    current: Decimal
    goal: Decimal
    remaining: Decimal
    percentage: float
    status: SavingsStatus


class PasswordStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


class PasswordEvaluation(BaseModel):
    """Strength indicator shown while the user types a password."""

    is_valid: bool
    strength: PasswordStrength
    has_min_length: bool
    has_upper_case: bool
    has_lower_case: bool
    has_number: bool
    has_special_char: bool
    message: str


class Dashboard(BaseModel):
    """Everything the dashboard page shows for one user."""

    overview: FinancialOverview
    budget: BudgetStatus
    savings: SavingsProgress
    expense_categories: list[CategoryTotal] = Field(default_factory=list)
    income_categories: list[CategoryTotal] = Field(default_factory=list)
    monthly_expenses: list[MonthlyTotal] = Field(default_factory=list)
    expense_trend: float = 0.0
