"""
Transaction Models for Finance Tracker

Expenses and incomes share one shape and differ only in their category
set. Drafts are what the user enters; records are drafts that have been
assigned an id and an owner.

DESIGN DECISION: Categories are explicit enums rather than free text so
breakdowns group reliably. Amounts are Decimal, never float.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from finance_tracker.models.common import ensure_utc


# =============================================================================
# ENUMS
# =============================================================================

class ExpenseCategory(str, Enum):
    """Categories offered when recording an expense."""
    FOOD = "Food"
    TRANSPORT = "Transport"
    SHOPPING = "Shopping"
    BILLS = "Bills"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class IncomeCategory(str, Enum):
    """Categories offered when recording an income."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENTS = "Investments"
    BUSINESS = "Business"
    OTHER = "Other"


class SortBy(str, Enum):
    DATE = "date"
    AMOUNT = "amount"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# =============================================================================
# DRAFTS AND RECORDS
# =============================================================================

class TransactionDraft(BaseModel):
    """Fields common to every expense and income entry."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Positive amount"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the money was for"
    )
    occurred_at: datetime = Field(
        ...,
        alias="date",
        description="When the transaction happened"
    )

    @field_validator('occurred_at')
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class ExpenseDraft(TransactionDraft):
    category: ExpenseCategory


class IncomeDraft(TransactionDraft):
    category: IncomeCategory


class TransactionRecord(TransactionDraft):
    """A stored transaction. Owned by exactly one user."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., alias="userId", min_length=1)

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Expense(TransactionRecord):
    category: ExpenseCategory


class Income(TransactionRecord):
    category: IncomeCategory


# =============================================================================
# UPDATES AND FILTERS
# =============================================================================

class TransactionUpdate(BaseModel):
    """Partial update. Only the fields that were set are applied."""
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    amount: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    occurred_at: Optional[datetime] = Field(default=None, alias="date")

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class ExpenseUpdate(TransactionUpdate):
    category: Optional[ExpenseCategory] = None


class IncomeUpdate(TransactionUpdate):
    category: Optional[IncomeCategory] = None


class TransactionFilter(BaseModel):
    """Active list filter. Date bounds are inclusive."""

    category: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator('start', 'end')
    @classmethod
    def normalize_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @model_validator(mode='after')
    def validate_range(self) -> 'TransactionFilter':
        if self.start and self.end and self.end < self.start:
            raise ValueError("Filter end cannot be before start")
        return self

    @classmethod
    def for_days(
        cls,
        category: Optional[str] = None,
        start_day: Optional[date] = None,
        end_day: Optional[date] = None,
    ) -> 'TransactionFilter':
        """Filter on whole calendar days (UTC); the end day counts up to its last instant."""
        return cls(
            category=category,
            start=datetime.combine(start_day, time.min, tzinfo=timezone.utc) if start_day else None,
            end=datetime.combine(end_day, time.max, tzinfo=timezone.utc) if end_day else None,
        )

    def matches(self, record: TransactionRecord) -> bool:
        category = getattr(record.category, "value", record.category)
        if self.category and category != self.category:
            return False
        if self.start and record.occurred_at < self.start:
            return False
        if self.end and record.occurred_at > self.end:
            return False
        return True
