"""
Authentication errors.

Each error carries a stable `code` (for the UI and the audit trail) and a
user-facing `message`. Storage-level failures are not AuthErrors; see
finance_tracker.services.storage.StorageError.
"""

from typing import Optional

from finance_tracker.models.validation import ValidationResult


class AuthError(Exception):
    """Base exception for authentication operations."""

    code = "auth/unknown"
    message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInputError(AuthError):
    """Form input failed validation. Nothing was read or written."""

    def __init__(self, result: ValidationResult):
        self.result = result
        issue = result.first_error
        if issue is None:
            self.code = "auth/invalid-input"
            super().__init__("Invalid input")
            return

        if issue.issue_type == "missing":
            self.code = "auth/missing-fields"
        elif issue.field == "email":
            self.code = "auth/invalid-email"
        elif issue.field == "password":
            self.code = "auth/weak-password"
        else:
            self.code = "auth/invalid-input"
        super().__init__(issue.message)

    @property
    def issues(self):
        return self.result.issues


class DuplicateEmailError(AuthError):
    code = "auth/email-already-in-use"
    message = "An account with this email already exists"


class UserNotFoundError(AuthError):
    code = "auth/user-not-found"
    message = "No account found with this email"


class InvalidCredentialsError(AuthError):
    code = "auth/wrong-password"
    message = "Incorrect password"


class NotAuthenticatedError(AuthError):
    code = "auth/not-authenticated"
    message = "Please sign in first"


class NoResetCodeFoundError(AuthError):
    code = "auth/no-reset-code"
    message = "Please request a new reset code"


class CodeExpiredError(AuthError):
    code = "auth/code-expired"
    message = "Reset code has expired"


class InvalidCodeError(AuthError):
    code = "auth/invalid-code"
    message = "Invalid reset code"
