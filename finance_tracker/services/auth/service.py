"""
Authentication Service

Orchestrates sign-up, sign-in, sign-out, password reset and profile
updates over the user directory, the session manager, the password
hasher and the reset code store.

DESIGN DECISION: This service is the sole owner of the "current user".
Nothing else holds the signed-in state; per-user stores receive the
actor explicitly via `require_user()`.

Every operation validates its inputs before touching storage. Write
failures propagate to the caller; only `restore()` recovers locally,
by clearing unreadable session data and starting signed out.
"""

import hmac
from datetime import datetime
from typing import Optional

from finance_tracker.audit import AuditLogger
from finance_tracker.config import AuthSettings, get_settings
from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.auth import ProfileUpdate, PublicUser, Session
from finance_tracker.models.common import Clock, utc_now
from finance_tracker.models.validation import ValidationResult
from finance_tracker.services.auth.directory import UserDirectory
from finance_tracker.services.auth.errors import (
    AuthError,
    CodeExpiredError,
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
)
from finance_tracker.services.auth.session import SessionManager
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
    StorageError,
)
from finance_tracker.validation import CredentialValidator


class AuthService:
    """
    Account and session operations for the single local user slot.

    Usage:
        auth = AuthService(store)
        await auth.restore()
        user = await auth.sign_in("ana@example.com", "secret1", remember_me=True)
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        settings: Optional[AuthSettings] = None,
        hasher: Optional[PasswordHasher] = None,
        directory: Optional[UserDirectory] = None,
        sessions: Optional[SessionManager] = None,
        reset_codes: Optional[ResetCodeStore] = None,
        delivery: Optional[ResetCodeDelivery] = None,
        validator: Optional[CredentialValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Clock = utc_now,
    ):
        self._settings = settings or get_settings().auth
        self._clock = clock
        self._hasher = hasher or PasswordHasher(rounds=self._settings.bcrypt_rounds)
        self._directory = directory or UserDirectory(store)
        self._sessions = sessions or SessionManager(store, self._settings, clock)
        self._sessions.set_expiry_callback(self._handle_session_expired)
        self._reset_codes = reset_codes or ResetCodeStore(
            store, ttl=self._settings.reset_code_ttl, clock=clock
        )
        self._delivery = delivery or LoggingResetCodeDelivery()
        self._validator = validator or CredentialValidator(self._settings)
        self._audit_logger = audit_logger

        self._current_user: Optional[PublicUser] = None
        self._session: Optional[Session] = None
        self._initialized = False
        self._lapsed = False

    # -------------------------------------------------------------------------
    # Current user
    # -------------------------------------------------------------------------

    @property
    def current_user(self) -> Optional[PublicUser]:
        self._drop_lapsed_session()
        return self._current_user

    @property
    def session_expiry(self) -> Optional[datetime]:
        return self._session.expires_at_datetime if self._session else None

    @property
    def is_initialized(self) -> bool:
        """True once restore() has run, whatever its outcome."""
        return self._initialized

    @property
    def needs_restore(self) -> bool:
        """True before the first restore() and after a session ran out in memory."""
        self._drop_lapsed_session()
        return not self._initialized or self._lapsed

    def require_user(self) -> PublicUser:
        """
        The signed-in actor.

        A session past its expiry ends here even if its timer never fired.

        Raises:
            NotAuthenticatedError: If nobody is signed in
        """
        self._drop_lapsed_session()
        if self._current_user is None:
            raise NotAuthenticatedError()
        return self._current_user

    def _drop_lapsed_session(self) -> None:
        # The persisted copy is purged by the next restore(), which also audits it
        if self._session is not None and self._session.is_expired(self._clock()):
            self._sessions.cancel_timer()
            self._set_signed_out()
            self._lapsed = True

    def _set_signed_out(self) -> None:
        self._current_user = None
        self._session = None

    async def _start_session(self, user: PublicUser, remember: bool) -> None:
        session = await self._sessions.create_session(user, remember)
        self._session = session
        self._current_user = user
        self._lapsed = False
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.session_created(
                user_id=user.id,
                expires_at=session.expires_at_datetime,
            ))

    async def _handle_session_expired(self, session: Session, detected_at: str) -> None:
        if self._current_user is not None and self._current_user.id == session.user_id:
            self._set_signed_out()
        if self._audit_logger:
            await self._audit_logger.log_session_expired(
                user_id=session.user_id,
                detected_at=detected_at,
            )

    @staticmethod
    def _ensure_valid(result: ValidationResult) -> None:
        if result.has_errors:
            raise InvalidInputError(result)

    # -------------------------------------------------------------------------
    # Start-up
    # -------------------------------------------------------------------------

    async def restore(self) -> Optional[PublicUser]:
        """
        Load the persisted session at start-up.

        Expired sessions are purged. Unreadable session data is cleared
        and the app starts signed out; this never raises for bad data.
        """
        try:
            session = await self._sessions.load_session()
            user = None
            if session is not None:
                user = await self._sessions.load_current_user()
                if user is None or user.id != session.user_id:
                    raise StorageCorruptedError("Session has no matching user projection")
        except StorageError as e:
            await self._recover_from_unreadable_session(e)
            return None
        finally:
            self._initialized = True
            self._lapsed = False

        if session is None:
            self._set_signed_out()
            return None

        self._session = session
        self._current_user = user
        self._sessions.arm_timer(session)
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.session_restored(
                user_id=user.id,
                expires_at=session.expires_at_datetime,
            ))
        return user

    async def _recover_from_unreadable_session(self, error: StorageError) -> None:
        self._set_signed_out()
        suspect_keys = [keys.SESSION_KEY, keys.CURRENT_USER_KEY]
        try:
            await self._sessions.destroy_session()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="session_cleanup_failed",
                    error_message=str(e),
                )
            return
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.storage_recovered(
                keys=suspect_keys,
                reason=str(error),
            ))

    # -------------------------------------------------------------------------
    # Sign-up / sign-in / sign-out
    # -------------------------------------------------------------------------

    async def sign_up(self, email: str, name: str, password: str) -> PublicUser:
        """
        Register a new account and sign it in (remembered session).

        Raises:
            InvalidInputError: Missing fields, bad email shape, short password
            DuplicateEmailError: If the email is already registered
        """
        self._ensure_valid(self._validator.validate_sign_up(email, name, password))

        name = name.strip()
        salt = self._hasher.generate_salt()
        digest = self._hasher.digest(password, salt)
        user_id = await self._directory.register(
            email=email,
            name=name,
            password_digest=digest,
            salt=salt,
        )

        user = PublicUser(id=user_id, email=email, name=name)
        await self._start_session(user, remember=True)

        if self._audit_logger:
            await self._audit_logger.log_user_registered(user_id=user_id, email=email)
        return user

    async def sign_in(self, email: str, password: str, remember_me: bool = False) -> PublicUser:
        """
        Sign in with email and password.

        Raises:
            InvalidInputError: Missing fields or bad email shape
            UserNotFoundError: If no account has this email
            InvalidCredentialsError: If the password does not match
            StorageCorruptedError: If the account's salt is missing or unreadable
        """
        self._ensure_valid(self._validator.validate_sign_in(email, password))

        record = await self._directory.find_by_email(email)
        if record is None:
            if self._audit_logger:
                await self._audit_logger.log_sign_in_failed(email, UserNotFoundError.code)
            raise UserNotFoundError()

        salt = await self._directory.load_salt(record.id)
        try:
            if not salt:
                raise StorageCorruptedError(f"No salt stored for user {record.id}")
            try:
                matches = self._hasher.verify(password, salt, record.password_digest)
            except ValueError as e:
                raise StorageCorruptedError(f"Unusable credentials for user {record.id}: {e}") from e
        except StorageCorruptedError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="credentials_corrupted",
                    error_message=str(e),
                    details={"user_id": record.id},
                )
            raise

        if not matches:
            if self._audit_logger:
                await self._audit_logger.log_sign_in_failed(email, InvalidCredentialsError.code)
            raise InvalidCredentialsError()

        user = record.to_public()
        await self._start_session(user, remember=remember_me)

        if self._audit_logger:
            await self._audit_logger.log_sign_in(user_id=user.id, remember_me=remember_me)
        return user

    async def sign_out(self) -> None:
        """End the session. Safe to call when already signed out."""
        user_id = self._current_user.id if self._current_user else None
        await self._sessions.destroy_session()
        self._set_signed_out()
        self._lapsed = False

        if self._audit_logger and user_id is not None:
            await self._audit_logger.log_signed_out(user_id)

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> datetime:
        """
        Issue a reset code for an account and hand it to the delivery.

        Returns:
            When the code expires

        Raises:
            InvalidInputError: Missing or malformed email
            UserNotFoundError: If no account has this email
        """
        self._ensure_valid(self._validator.validate_reset_request(email))

        if await self._directory.find_by_email(email) is None:
            raise UserNotFoundError()

        reset_code = await self._reset_codes.issue(email)
        await self._delivery.deliver(email, reset_code)

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.password_reset_requested(
                email=email,
                expires_at=reset_code.expiry_datetime,
            ))
        return reset_code.expiry_datetime

    async def reset_password(self, email: str, code: str, new_password: str) -> None:
        """
        Set a new password using an outstanding reset code.

        Raises:
            InvalidInputError: Missing fields, bad email, short password
            NoResetCodeFoundError: If no code was requested for this email
            CodeExpiredError: If the code is past its expiry
            InvalidCodeError: If the code does not match
            UserNotFoundError: If the account disappeared meanwhile
        """
        self._ensure_valid(self._validator.validate_reset(email, code, new_password))

        try:
            stored = await self._reset_codes.get(email)
            if stored is None:
                raise NoResetCodeFoundError()
            if stored.is_expired(self._clock()):
                raise CodeExpiredError()
            if not hmac.compare_digest(stored.code.encode("utf-8"), code.encode("utf-8")):
                raise InvalidCodeError()

            record = await self._directory.find_by_email(email)
            if record is None:
                raise UserNotFoundError()
        except AuthError as e:
            if self._audit_logger:
                await self._audit_logger.log_password_reset_failed(email, e.code)
            raise

        salt = self._hasher.generate_salt()
        digest = self._hasher.digest(new_password, salt)
        await self._directory.update_password(record.id, new_digest=digest, new_salt=salt)
        await self._reset_codes.consume(email)

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.password_reset_completed(record.id))

    # -------------------------------------------------------------------------
    # Profile
    # -------------------------------------------------------------------------

    async def update_user_profile(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> PublicUser:
        """
        Change the signed-in user's name and/or email.

        Raises:
            NotAuthenticatedError: If nobody is signed in
            InvalidInputError: Empty name or malformed email
            DuplicateEmailError: If the new email belongs to another account
        """
        user = self.require_user()
        update = ProfileUpdate(name=name, email=email)
        self._ensure_valid(self._validator.validate_profile_update(update))

        record = await self._directory.update_profile(
            user.id,
            name=update.name,
            email=update.email,
        )
        updated = record.to_public()
        await self._sessions.save_current_user(updated)
        self._current_user = updated

        if self._audit_logger:
            fields = [f for f in ("name", "email") if getattr(update, f) is not None]
            await self._audit_logger.log(AuditEventBuilder.profile_updated(user.id, fields))
        return updated
