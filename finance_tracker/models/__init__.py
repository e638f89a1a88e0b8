"""
Data Models Package

This package contains all Pydantic models used in the Finance Tracker.
Everything persisted or returned by a service conforms to these schemas.
"""

from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from finance_tracker.models.auth import (
    ProfileUpdate,
    PublicUser,
    ResetCode,
    Session,
    UserRecord,
)
from finance_tracker.models.common import Clock, utc_now
from finance_tracker.models.report import (
    BudgetStatus,
    CategoryTotal,
    Dashboard,
    FinancialOverview,
    MonthlyTotal,
    PasswordEvaluation,
    PasswordStrength,
    SavingsProgress,
    SavingsState,
    SavingsStatus,
)
from finance_tracker.models.transaction import (
    Expense,
    ExpenseCategory,
    ExpenseDraft,
    ExpenseUpdate,
    Income,
    IncomeCategory,
    IncomeDraft,
    IncomeUpdate,
    SortBy,
    SortOrder,
    TransactionFilter,
    TransactionRecord,
)
from finance_tracker.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
    # Account models
    "ProfileUpdate",
    "PublicUser",
    "ResetCode",
    "Session",
    "UserRecord",
    # Time
    "Clock",
    "utc_now",
    # Reports
    "BudgetStatus",
    "CategoryTotal",
    "Dashboard",
    "FinancialOverview",
    "MonthlyTotal",
    "PasswordEvaluation",
    "PasswordStrength",
    "SavingsProgress",
    "SavingsState",
    "SavingsStatus",
    # Transactions
    "Expense",
    "ExpenseCategory",
    "ExpenseDraft",
    "ExpenseUpdate",
    "Income",
    "IncomeCategory",
    "IncomeDraft",
    "IncomeUpdate",
    "SortBy",
    "SortOrder",
    "TransactionFilter",
    "TransactionRecord",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
