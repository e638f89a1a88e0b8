"""Per-user finance data: transactions, budget and savings."""

from finance_tracker.services.finance.budget import (
    BudgetService,
    InvalidAmountError,
    to_amount,
)
from finance_tracker.services.finance.transactions import (
    ExpenseStore,
    IncomeStore,
    RecordNotFoundError,
    TransactionStore,
)

__all__ = [
    "BudgetService",
    "ExpenseStore",
    "IncomeStore",
    "InvalidAmountError",
    "RecordNotFoundError",
    "TransactionStore",
    "to_amount",
]
