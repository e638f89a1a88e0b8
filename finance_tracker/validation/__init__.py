"""Input validation package."""

from finance_tracker.validation.password import evaluate_password_strength
from finance_tracker.validation.validator import (
    EMAIL_PATTERN,
    MAX_PASSWORD_BYTES,
    CredentialValidator,
    is_valid_email,
)

__all__ = [
    "EMAIL_PATTERN",
    "MAX_PASSWORD_BYTES",
    "CredentialValidator",
    "evaluate_password_strength",
    "is_valid_email",
]
