"""
Persisted key layout.

Every key the application writes is built here, so the on-disk layout
can be read in one place.
"""

USER_RECORD_PREFIX = "registered_users:"
USER_EMAIL_INDEX_PREFIX = "registered_users_email:"
SALT_KEY_PREFIX = "@auth_salt_"
CURRENT_USER_KEY = "@auth_store"
SESSION_KEY = "@auth_session"
RESET_CODE_PREFIX = "reset_code_"

EXPENSES_PREFIX = "@expenses:"
INCOMES_PREFIX = "@incomes:"

MONTHLY_BUDGET_PREFIX = "monthlyBudget:"
SAVINGS_GOAL_PREFIX = "savingsGoal:"
CURRENT_SAVINGS_PREFIX = "currentSavings:"

AUDIT_PREFIX = "@audit:"


def user_record_key(user_id: str) -> str:
    return f"{USER_RECORD_PREFIX}{user_id}"


def user_email_key(email: str) -> str:
    return f"{USER_EMAIL_INDEX_PREFIX}{email}"


def salt_key(user_id: str) -> str:
    return f"{SALT_KEY_PREFIX}{user_id}"


def reset_code_key(email: str) -> str:
    return f"{RESET_CODE_PREFIX}{email}"


def user_records_prefix(collection_prefix: str, user_id: str) -> str:
    """Prefix shared by every record one user owns in a collection."""
    return f"{collection_prefix}{user_id}:"


def record_key(collection_prefix: str, user_id: str, record_id: str) -> str:
    return f"{user_records_prefix(collection_prefix, user_id)}{record_id}"


def audit_key(timestamp_ms: int, event_id: str) -> str:
    # zero-padded so lexical order is chronological
    return f"{AUDIT_PREFIX}{timestamp_ms:015d}:{event_id}"
