"""
Authentication Services Package

Local accounts, password hashing, the signed-in session and password
recovery.
"""

from finance_tracker.services.auth.directory import UserDirectory
from finance_tracker.services.auth.errors import (
    AuthError,
    CodeExpiredError,
    DuplicateEmailError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidInputError,
    NoResetCodeFoundError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from finance_tracker.services.auth.hasher import PasswordHasher
from finance_tracker.services.auth.reset import (
    LoggingResetCodeDelivery,
    ResetCodeDelivery,
    ResetCodeStore,
    generate_reset_code,
)
from finance_tracker.services.auth.service import AuthService
from finance_tracker.services.auth.session import SessionManager

__all__ = [
    # Facade
    "AuthService",
    # Components
    "PasswordHasher",
    "ResetCodeStore",
    "SessionManager",
    "UserDirectory",
    # Delivery
    "LoggingResetCodeDelivery",
    "ResetCodeDelivery",
    "generate_reset_code",
    # Exceptions
    "AuthError",
    "CodeExpiredError",
    "DuplicateEmailError",
    "InvalidCodeError",
    "InvalidCredentialsError",
    "InvalidInputError",
    "NoResetCodeFoundError",
    "NotAuthenticatedError",
    "UserNotFoundError",
]
