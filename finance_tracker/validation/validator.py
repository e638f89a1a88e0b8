"""
Credential Validation

DESIGN DECISION: Every auth operation validates its inputs before it
touches storage. A failed validation therefore never leaves partial
state behind.

The validator reports issues rather than raising, in the same shape for
every form, so the UI can highlight each offending field. The auth
service raises InvalidInputError when a result has errors.

IMPORTANT: Validation NEVER silently fixes input. Emails are compared
exactly as typed, so they are not trimmed or lower-cased here.
"""

import re
from typing import Optional

from finance_tracker.config import AuthSettings, get_settings
from finance_tracker.models.auth import ProfileUpdate
from finance_tracker.models.validation import ValidationIssue, ValidationResult


# local@domain.tld, no whitespace, exactly one @
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


class CredentialValidator:
    """Validates the inputs of sign-up, sign-in, reset and profile forms."""

    def __init__(self, settings: Optional[AuthSettings] = None):
        self._settings = settings or get_settings().auth

    def _missing(self, field: str, message: str) -> ValidationIssue:
        return ValidationIssue(field=field, issue_type="missing", message=message)

    def _check_email(self, email: str, issues: list[ValidationIssue]) -> None:
        if not is_valid_email(email):
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message="Please enter a valid email address",
            ))

    def _check_password(self, password: str, issues: list[ValidationIssue]) -> None:
        minimum = self._settings.min_password_length
        if len(password) < minimum:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password should be at least {minimum} characters",
            ))
        elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_long",
                message=f"Password should be at most {MAX_PASSWORD_BYTES} bytes",
            ))

    def validate_sign_up(self, email: str, name: str, password: str) -> ValidationResult:
        if not email or not name or not password:
            return ValidationResult(issues=[self._missing("form", "All fields are required")])

        issues: list[ValidationIssue] = []
        self._check_email(email, issues)
        if not name.strip():
            issues.append(self._missing("name", "Name is required"))
        self._check_password(password, issues)
        return ValidationResult(issues=issues)

    def validate_sign_in(self, email: str, password: str) -> ValidationResult:
        if not email or not password:
            return ValidationResult(issues=[self._missing("form", "Email and password are required")])

        issues: list[ValidationIssue] = []
        self._check_email(email, issues)
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_long",
                message=f"Password should be at most {MAX_PASSWORD_BYTES} bytes",
            ))
        return ValidationResult(issues=issues)

    def validate_reset_request(self, email: str) -> ValidationResult:
        if not email:
            return ValidationResult(issues=[self._missing("email", "Email is required")])
        issues: list[ValidationIssue] = []
        self._check_email(email, issues)
        return ValidationResult(issues=issues)

    def validate_reset(self, email: str, code: str, new_password: str) -> ValidationResult:
        if not email or not code or not new_password:
            return ValidationResult(issues=[self._missing("form", "All fields are required")])

        issues: list[ValidationIssue] = []
        self._check_email(email, issues)
        self._check_password(new_password, issues)
        return ValidationResult(issues=issues)

    def validate_profile_update(self, update: ProfileUpdate) -> ValidationResult:
        issues: list[ValidationIssue] = []
        if update.is_empty:
            issues.append(self._missing("form", "Nothing to update"))
        if update.name is not None and not update.name:
            issues.append(self._missing("name", "Name cannot be empty"))
        if update.email is not None:
            if not update.email:
                issues.append(self._missing("email", "Email cannot be empty"))
            else:
                self._check_email(update.email, issues)
        return ValidationResult(issues=issues)
