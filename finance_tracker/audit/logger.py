"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of account and data changes
2. Debugging capability
3. User can see history of their interactions

The audit logger:
- Is async so it composes with the storage calls around it
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
from typing import Optional

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> int:
    """
    Route structlog output through the standard library at DEBUG or INFO.

    Returns the level that was set.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)
    return level


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_tracker.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_user_registered(self, user_id: str, email: str) -> None:
        await self.log(AuditEventBuilder.user_registered(user_id=user_id, email=email))

    async def log_sign_in(self, user_id: str, remember_me: bool) -> None:
        await self.log(AuditEventBuilder.sign_in_succeeded(user_id=user_id, remember_me=remember_me))

    async def log_sign_in_failed(self, email: str, error_code: str) -> None:
        await self.log(AuditEventBuilder.sign_in_failed(email=email, error_code=error_code))

    async def log_signed_out(self, user_id: Optional[str]) -> None:
        await self.log(AuditEventBuilder.signed_out(user_id=user_id))

    async def log_session_expired(self, user_id: str, detected_at: str) -> None:
        """Log an expiry noticed either at load time or by the timer."""
        await self.log(AuditEventBuilder.session_expired(user_id=user_id, detected_at=detected_at))

    async def log_password_reset_failed(self, email: str, error_code: str) -> None:
        await self.log(AuditEventBuilder.password_reset_failed(email=email, error_code=error_code))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))
