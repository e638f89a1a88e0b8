"""
Session Manager

Issues, persists and expires the single signed-in session.

Expiry is enforced twice:
1. A one-shot timer on the running event loop, while the process lives
2. A check every time the session is loaded, which catches a cold start
   after the timer could not fire

A session is written only after the public user projection it refers
to, so a persisted session always has its projection.
"""

import asyncio
import secrets
from typing import Awaitable, Callable, Optional

import structlog
from pydantic import ValidationError

from finance_tracker.config import AuthSettings, get_settings
from finance_tracker.models.auth import PublicUser, Session
from finance_tracker.models.common import Clock, to_epoch_ms, utc_now
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
    StorageError,
)

# Called with the expired session and where the expiry was noticed ("load" or "timer")
ExpiryCallback = Callable[[Session, str], Awaitable[None]]

logger = structlog.get_logger(__name__)


class SessionManager:
    """Owns the persisted session and the public user projection."""

    def __init__(
        self,
        store: KeyValueStoreInterface,
        settings: Optional[AuthSettings] = None,
        clock: Clock = utc_now,
        on_expired: Optional[ExpiryCallback] = None,
    ):
        self._store = store
        self._settings = settings or get_settings().auth
        self._clock = clock
        self._on_expired = on_expired
        self._timer: Optional[asyncio.TimerHandle] = None
        self._expiry_task: Optional[asyncio.Task] = None

    def set_expiry_callback(self, callback: Optional[ExpiryCallback]) -> None:
        self._on_expired = callback

    @property
    def timer_armed(self) -> bool:
        return self._timer is not None

    async def create_session(self, user: PublicUser, remember: bool) -> Session:
        """
        Start a new session for a user, replacing any existing one.

        Lifetime is 7 days with `remember`, 1 day without (configurable).
        """
        expires = self._clock() + self._settings.session_lifetime(remember)
        session = Session(
            token=secrets.token_urlsafe(32),
            expires_at=to_epoch_ms(expires),
            user_id=user.id,
        )

        await self.save_current_user(user)
        await self._store.set_json(keys.SESSION_KEY, session.to_storage())
        self.arm_timer(session)
        return session

    async def _read_session(self) -> Optional[Session]:
        data = await self._store.get_json(keys.SESSION_KEY)
        if data is None:
            return None
        try:
            return Session.model_validate(data)
        except ValidationError as e:
            raise StorageCorruptedError(f"Unreadable session: {e}") from e

    async def load_session(self) -> Optional[Session]:
        """
        Load the persisted session.

        Expired sessions are purged and never returned.

        Raises:
            StorageCorruptedError: If the stored session is malformed
        """
        session = await self._read_session()
        if session is None:
            return None

        if session.is_expired(self._clock()):
            await self.destroy_session()
            if self._on_expired:
                await self._on_expired(session, "load")
            return None

        return session

    async def load_current_user(self) -> Optional[PublicUser]:
        data = await self._store.get_json(keys.CURRENT_USER_KEY)
        if data is None:
            return None
        try:
            return PublicUser.model_validate(data)
        except ValidationError as e:
            raise StorageCorruptedError(f"Unreadable current user: {e}") from e

    async def save_current_user(self, user: PublicUser) -> None:
        await self._store.set_json(keys.CURRENT_USER_KEY, user.model_dump())

    async def destroy_session(self) -> None:
        """Remove session and projection. Directory and salts are untouched."""
        self.cancel_timer()
        await self._store.multi_remove([keys.SESSION_KEY, keys.CURRENT_USER_KEY])

    def arm_timer(self, session: Session) -> None:
        """Schedule expiry on the running loop. No loop, no timer."""
        self.cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        delay = session.remaining_seconds(self._clock())
        if delay <= 0:
            return
        self._timer = loop.call_later(delay, self._on_timer, session.token)

    def cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, token: str) -> None:
        self._timer = None
        self._expiry_task = asyncio.ensure_future(self.expire_if_current(token))
        self._expiry_task.add_done_callback(self._log_expiry_failure)

    @staticmethod
    def _log_expiry_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "session_timer_expiry_failed",
                error=str(error),
                error_type=type(error).__name__,
            )

    async def expire_if_current(self, token: str) -> bool:
        """
        Destroy the persisted session if it is still the one with `token`.

        Returns True if a session was expired.
        """
        try:
            session = await self._read_session()
        except StorageError as e:
            logger.warning("session_unreadable_at_expiry", error=str(e))
            await self.destroy_session()
            return False

        if session is None or session.token != token:
            return False

        await self.destroy_session()
        if self._on_expired:
            await self._on_expired(session, "timer")
        return True
