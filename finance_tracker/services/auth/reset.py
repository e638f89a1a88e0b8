"""
Password reset codes.

A reset code is a short-lived 6-digit credential keyed by email. A new
request overwrites the outstanding code; a successful reset consumes it.

Delivery is pluggable. The default delivery only logs the code, since
this application has no mail transport.
"""

import secrets
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

import structlog
from pydantic import ValidationError

from finance_tracker.models.auth import ResetCode
from finance_tracker.models.common import Clock, to_epoch_ms, utc_now
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
)


def generate_reset_code() -> str:
    """Uniform 6-digit code, never starting with 0."""
    return str(100000 + secrets.randbelow(900000))


class ResetCodeStore:
    """Persistence of outstanding reset codes."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        ttl: timedelta = timedelta(minutes=5),
        clock: Clock = utc_now,
    ):
        self._store = store
        self._ttl = ttl
        self._clock = clock

    async def issue(self, email: str) -> ResetCode:
        reset_code = ResetCode(
            code=generate_reset_code(),
            expiry=to_epoch_ms(self._clock() + self._ttl),
        )
        await self._store.set_json(keys.reset_code_key(email), reset_code.to_storage())
        return reset_code

    async def get(self, email: str) -> Optional[ResetCode]:
        data = await self._store.get_json(keys.reset_code_key(email))
        if data is None:
            return None
        try:
            return ResetCode.model_validate(data)
        except ValidationError as e:
            raise StorageCorruptedError(f"Unreadable reset code for {email!r}: {e}") from e

    async def consume(self, email: str) -> None:
        await self._store.remove_item(keys.reset_code_key(email))


class ResetCodeDelivery(ABC):
    """Gets a freshly issued code to the account owner."""

    @abstractmethod
    async def deliver(self, email: str, reset_code: ResetCode) -> None:
        pass


class LoggingResetCodeDelivery(ResetCodeDelivery):
    """Writes the code to the local log instead of sending an email."""

    def __init__(self):
        self._logger = structlog.get_logger("finance_tracker.reset_delivery")

    async def deliver(self, email: str, reset_code: ResetCode) -> None:
        self._logger.info(
            "reset_code_issued",
            email=email,
            code=reset_code.code,
            expires_at=reset_code.expiry_datetime.isoformat(),
        )
