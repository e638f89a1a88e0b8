"""
Audit Models for Finance Tracker

Every significant action in the system is logged for audit purposes.
This provides:
1. Complete traceability of sign-ins, resets and data changes
2. Debugging information when things go wrong
3. A history the user can review

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
Events never carry passwords, digests, salts, session tokens or reset codes.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Accounts
    USER_REGISTERED = "user_registered"
    SIGN_IN_SUCCEEDED = "sign_in_succeeded"
    SIGN_IN_FAILED = "sign_in_failed"
    SIGNED_OUT = "signed_out"
    PROFILE_UPDATED = "profile_updated"

    # Sessions
    SESSION_CREATED = "session_created"
    SESSION_RESTORED = "session_restored"
    SESSION_EXPIRED = "session_expired"

    # Password recovery
    PASSWORD_RESET_REQUESTED = "password_reset_requested"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"
    PASSWORD_RESET_FAILED = "password_reset_failed"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Budget and savings
    BUDGET_SET = "budget_set"
    SAVINGS_GOAL_SET = "savings_goal_set"
    SAVINGS_ADDED = "savings_added"

    # System events
    STORAGE_RECOVERED = "storage_recovered"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'expense', 'income')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="User who owns the entity or performed the action"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_storage(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_storage(cls, raw: str) -> "AuditEvent":
        return cls.model_validate(json.loads(raw))


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_registered(user_id, email)
        event = AuditEventBuilder.sign_in_failed(email, "auth/wrong-password")
    """

    @staticmethod
    def user_registered(user_id: str, email: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description=f"Account created for {email}",
            details={"email": email},
            is_user_action=True,
        )

    @staticmethod
    def sign_in_succeeded(user_id: str, remember_me: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_SUCCEEDED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="User signed in",
            details={"remember_me": remember_me},
            is_user_action=True,
        )

    @staticmethod
    def sign_in_failed(email: str, error_code: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGN_IN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Sign-in failed for {email}",
            details={"email": email},
            error_code=error_code,
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="User signed out",
            is_user_action=True,
        )

    @staticmethod
    def profile_updated(user_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PROFILE_UPDATED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description=f"Profile updated: {', '.join(fields)}",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def session_created(user_id: str, expires_at: datetime) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_CREATED,
            entity_type="session",
            user_id=user_id,
            description="Session created",
            details={"expires_at": expires_at.isoformat()},
        )

    @staticmethod
    def session_restored(user_id: str, expires_at: datetime) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_RESTORED,
            entity_type="session",
            user_id=user_id,
            description="Session restored at start-up",
            details={"expires_at": expires_at.isoformat()},
        )

    @staticmethod
    def session_expired(user_id: str, detected_at: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_EXPIRED,
            entity_type="session",
            user_id=user_id,
            description="Session expired",
            details={"detected_at": detected_at},
        )

    @staticmethod
    def password_reset_requested(email: str, expires_at: datetime) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_REQUESTED,
            entity_type="user",
            description=f"Password reset requested for {email}",
            details={"email": email, "expires_at": expires_at.isoformat()},
            is_user_action=True,
        )

    @staticmethod
    def password_reset_completed(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_COMPLETED,
            entity_type="user",
            entity_id=user_id,
            user_id=user_id,
            description="Password reset completed",
            is_user_action=True,
        )

    @staticmethod
    def password_reset_failed(email: str, error_code: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PASSWORD_RESET_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="user",
            description=f"Password reset failed for {email}",
            details={"email": email},
            error_code=error_code,
            is_user_action=True,
        )

    @staticmethod
    def transaction_changed(
        event_type: AuditEventType,
        kind: str,
        record_id: str,
        user_id: str,
        amount: Optional[str] = None,
    ) -> AuditEvent:
        verb = {
            AuditEventType.TRANSACTION_ADDED: "added",
            AuditEventType.TRANSACTION_UPDATED: "updated",
            AuditEventType.TRANSACTION_DELETED: "deleted",
        }[event_type]
        return AuditEvent(
            event_type=event_type,
            entity_type=kind,
            entity_id=record_id,
            user_id=user_id,
            description=f"{kind.capitalize()} {verb}",
            details={"amount": amount} if amount is not None else {},
            is_user_action=True,
        )

    @staticmethod
    def budget_changed(
        event_type: AuditEventType,
        user_id: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="budget",
            entity_id=user_id,
            user_id=user_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: {amount}",
            details={"amount": amount},
            is_user_action=True,
        )

    @staticmethod
    def storage_recovered(keys: list[str], reason: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_RECOVERED,
            severity=AuditSeverity.WARNING,
            description="Cleared unreadable session data",
            error_message=reason,
            details={"keys": keys},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
