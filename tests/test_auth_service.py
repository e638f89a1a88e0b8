"""
Tests for the authentication service.

Covers the account lifecycle end to end over an in-memory store:
sign-up, sign-in, sessions, sign-out, password reset and profile edits.
"""

import asyncio

import pytest

from finance_tracker.services.auth import (
    AuthService,
    CodeExpiredError,
    DuplicateEmailError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidInputError,
    NoResetCodeFoundError,
    NotAuthenticatedError,
    UserNotFoundError,
)
from finance_tracker.services.storage import StorageCorruptedError, keys

EMAIL = "ana@example.com"
PASSWORD = "secret1"


async def user_digest(store, user_id):
    record = await store.get_json(keys.user_record_key(user_id))
    return record["passwordHash"]


def restarted(auth_fixture_args):
    """A fresh service over the same store, as after an app restart."""
    store, settings, delivery, audit_logger, clock = auth_fixture_args
    return AuthService(
        store,
        settings=settings,
        delivery=delivery,
        audit_logger=audit_logger,
        clock=clock,
    )


@pytest.fixture
def wiring(store, auth_settings, delivery, audit_logger, clock):
    return store, auth_settings, delivery, audit_logger, clock


class TestSignUp:

    @pytest.mark.asyncio
    async def test_sign_up_then_sign_in_yields_same_user(self, auth):
        created = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()

        signed_in = await auth.sign_in(EMAIL, PASSWORD)
        assert signed_in.id == created.id
        assert auth.current_user == signed_in

    @pytest.mark.asyncio
    async def test_sign_up_signs_in_with_remembered_session(self, auth, clock):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        assert auth.current_user == user
        assert (auth.session_expiry - clock()).days == 7

    @pytest.mark.asyncio
    async def test_duplicate_email_leaves_directory_unchanged(self, auth, store):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        before = store.snapshot()

        with pytest.raises(DuplicateEmailError) as exc_info:
            await auth.sign_up(EMAIL, "Other", "another1")

        assert exc_info.value.code == "auth/email-already-in-use"
        assert store.snapshot() == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email,name,password,code", [
        ("", "Ana", PASSWORD, "auth/missing-fields"),
        (EMAIL, "", PASSWORD, "auth/missing-fields"),
        (EMAIL, "Ana", "", "auth/missing-fields"),
        ("ana.example.com", "Ana", PASSWORD, "auth/invalid-email"),
        ("ana@example", "Ana", PASSWORD, "auth/invalid-email"),
        (EMAIL, "Ana", "12345", "auth/weak-password"),
    ])
    async def test_invalid_input_touches_nothing(self, auth, store, email, name, password, code):
        with pytest.raises(InvalidInputError) as exc_info:
            await auth.sign_up(email, name, password)

        assert exc_info.value.code == code
        assert store.snapshot() == {}
        assert auth.current_user is None

    @pytest.mark.asyncio
    async def test_missing_fields_message(self, auth):
        with pytest.raises(InvalidInputError) as exc_info:
            await auth.sign_up("", "", "")
        assert exc_info.value.message == "All fields are required"


class TestSignIn:

    @pytest.mark.asyncio
    async def test_unknown_email(self, auth):
        with pytest.raises(UserNotFoundError):
            await auth.sign_in("nobody@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_wrong_password_leaves_digest_unchanged(self, auth, store):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        digest_before = await user_digest(store, user.id)

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth.sign_in(EMAIL, "wrong-password")

        assert exc_info.value.code == "auth/wrong-password"
        assert await user_digest(store, user.id) == digest_before
        assert auth.current_user is None

    @pytest.mark.asyncio
    async def test_missing_salt_is_corruption_not_reset(self, auth, store):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        digest_before = await user_digest(store, user.id)
        await store.remove_item(keys.salt_key(user.id))

        with pytest.raises(StorageCorruptedError):
            await auth.sign_in(EMAIL, "any-password")

        assert await user_digest(store, user.id) == digest_before
        assert await store.get_item(keys.salt_key(user.id)) is None
        with pytest.raises(StorageCorruptedError):
            await auth.sign_in(EMAIL, "any-password")

    @pytest.mark.asyncio
    async def test_missing_password_message(self, auth):
        with pytest.raises(InvalidInputError) as exc_info:
            await auth.sign_in(EMAIL, "")
        assert exc_info.value.message == "Email and password are required"

    @pytest.mark.asyncio
    async def test_remember_me_controls_lifetime(self, auth, clock):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()

        await auth.sign_in(EMAIL, PASSWORD, remember_me=False)
        assert (auth.session_expiry - clock()).total_seconds() == 24 * 3600

        await auth.sign_in(EMAIL, PASSWORD, remember_me=True)
        assert (auth.session_expiry - clock()).days == 7


class TestSessionLifecycle:

    @pytest.mark.asyncio
    async def test_restore_brings_back_user(self, auth, wiring):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)

        fresh = restarted(wiring)
        assert not fresh.is_initialized
        assert await fresh.restore() == user
        assert fresh.is_initialized
        assert fresh.current_user == user

    @pytest.mark.asyncio
    async def test_restore_after_short_session_elapsed(self, auth, wiring, clock):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        await auth.sign_in(EMAIL, PASSWORD, remember_me=False)

        clock.advance(days=1)
        fresh = restarted(wiring)

        assert await fresh.restore() is None
        assert fresh.current_user is None

    @pytest.mark.asyncio
    async def test_remembered_session_survives_two_days_not_eight(self, auth, wiring, clock):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)

        clock.advance(days=2)
        assert await restarted(wiring).restore() is not None

        clock.advance(days=6)
        assert await restarted(wiring).restore() is None

    @pytest.mark.asyncio
    async def test_restore_recovers_from_corrupted_session(self, auth, store, wiring, audit_storage):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await store.set_item(keys.SESSION_KEY, "{broken")

        fresh = restarted(wiring)
        assert await fresh.restore() is None
        assert fresh.is_initialized

        data = store.snapshot()
        assert keys.SESSION_KEY not in data
        assert keys.CURRENT_USER_KEY not in data
        events = await audit_storage.get_recent_events()
        assert "storage_recovered" in {e.event_type.value for e in events}

    @pytest.mark.asyncio
    async def test_restore_rejects_session_without_projection(self, auth, store, wiring):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await store.remove_item(keys.CURRENT_USER_KEY)

        fresh = restarted(wiring)
        assert await fresh.restore() is None
        assert keys.SESSION_KEY not in store.snapshot()

    @pytest.mark.asyncio
    async def test_timer_signs_user_out(self, auth, wiring, clock, store):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        await auth.sign_in(EMAIL, PASSWORD, remember_me=False)

        clock.advance(hours=24, seconds=-0.05)
        fresh = restarted(wiring)
        await fresh.restore()
        assert fresh.current_user is not None

        await asyncio.sleep(0.2)

        assert fresh.current_user is None
        assert keys.SESSION_KEY not in store.snapshot()

    @pytest.mark.asyncio
    async def test_sign_out_twice(self, auth, store):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)

        await auth.sign_out()
        await auth.sign_out()

        assert auth.current_user is None
        assert keys.SESSION_KEY not in store.snapshot()

    @pytest.mark.asyncio
    async def test_sign_out_keeps_account(self, auth):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        assert await auth.sign_in(EMAIL, PASSWORD) is not None

    def test_require_user_when_signed_out(self, auth):
        with pytest.raises(NotAuthenticatedError):
            auth.require_user()

    @pytest.mark.asyncio
    async def test_require_user_after_expiry_without_timer(self, auth, clock):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        await auth.sign_in(EMAIL, PASSWORD, remember_me=False)
        auth._sessions.cancel_timer()

        clock.advance(days=2)

        with pytest.raises(NotAuthenticatedError):
            auth.require_user()
        assert auth.current_user is None
        assert auth.session_expiry is None

    @pytest.mark.asyncio
    async def test_lapsed_session_is_purged_on_next_restore(self, auth, store, clock, audit_storage):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()
        await auth.sign_in(EMAIL, PASSWORD, remember_me=False)
        auth._sessions.cancel_timer()

        clock.advance(hours=24)
        assert auth.current_user is None
        assert auth.needs_restore

        assert await auth.restore() is None
        assert not auth.needs_restore
        assert keys.SESSION_KEY not in store.snapshot()
        events = await audit_storage.get_recent_events()
        assert "session_expired" in {e.event_type.value for e in events}

    @pytest.mark.asyncio
    async def test_sign_in_after_lapse_clears_restore_flag(self, auth, clock):
        await auth.restore()
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        auth._sessions.cancel_timer()
        clock.advance(days=8)
        assert auth.needs_restore

        await auth.sign_in(EMAIL, PASSWORD)
        assert not auth.needs_restore
        assert auth.require_user().email == EMAIL


class TestPasswordReset:

    @pytest.mark.asyncio
    async def test_reset_then_sign_in_with_new_password(self, auth, delivery):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.sign_out()

        await auth.request_password_reset(EMAIL)
        await auth.reset_password(EMAIL, delivery.code_for(EMAIL), "newpass1")

        assert await auth.sign_in(EMAIL, "newpass1") is not None
        await auth.sign_out()
        with pytest.raises(InvalidCredentialsError):
            await auth.sign_in(EMAIL, PASSWORD)

    @pytest.mark.asyncio
    async def test_code_cannot_be_reused(self, auth, delivery):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.request_password_reset(EMAIL)
        code = delivery.code_for(EMAIL)

        await auth.reset_password(EMAIL, code, "newpass1")

        with pytest.raises(NoResetCodeFoundError):
            await auth.reset_password(EMAIL, code, "newpass2")

    @pytest.mark.asyncio
    async def test_reset_changes_salt(self, auth, store, delivery):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        salt_before = await store.get_item(keys.salt_key(user.id))

        await auth.request_password_reset(EMAIL)
        await auth.reset_password(EMAIL, delivery.code_for(EMAIL), "newpass1")

        assert await store.get_item(keys.salt_key(user.id)) != salt_before

    @pytest.mark.asyncio
    async def test_expired_code_leaves_digest(self, auth, store, delivery, clock):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        digest_before = await user_digest(store, user.id)
        await auth.request_password_reset(EMAIL)

        clock.advance(minutes=5, seconds=1)

        with pytest.raises(CodeExpiredError) as exc_info:
            await auth.reset_password(EMAIL, delivery.code_for(EMAIL), "newpass1")
        assert exc_info.value.code == "auth/code-expired"
        assert await user_digest(store, user.id) == digest_before

    @pytest.mark.asyncio
    async def test_code_valid_at_five_minutes(self, auth, delivery, clock):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.request_password_reset(EMAIL)

        clock.advance(minutes=5)
        await auth.reset_password(EMAIL, delivery.code_for(EMAIL), "newpass1")

    @pytest.mark.asyncio
    async def test_mismatched_code_leaves_digest(self, auth, store, delivery):
        user = await auth.sign_up(EMAIL, "Ana", PASSWORD)
        digest_before = await user_digest(store, user.id)
        await auth.request_password_reset(EMAIL)
        wrong = "999999" if delivery.code_for(EMAIL) != "999999" else "111111"

        with pytest.raises(InvalidCodeError):
            await auth.reset_password(EMAIL, wrong, "newpass1")
        assert await user_digest(store, user.id) == digest_before

    @pytest.mark.asyncio
    async def test_new_request_overwrites_code(self, auth, delivery, store):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.request_password_reset(EMAIL)
        await auth.request_password_reset(EMAIL)

        stored = await store.get_json(keys.reset_code_key(EMAIL))
        assert stored["code"] == delivery.code_for(EMAIL)

    @pytest.mark.asyncio
    async def test_reset_without_request(self, auth):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        with pytest.raises(NoResetCodeFoundError):
            await auth.reset_password(EMAIL, "123456", "newpass1")

    @pytest.mark.asyncio
    async def test_request_for_unknown_email(self, auth, store):
        with pytest.raises(UserNotFoundError):
            await auth.request_password_reset("nobody@example.com")
        assert keys.reset_code_key("nobody@example.com") not in store.snapshot()

    @pytest.mark.asyncio
    async def test_code_is_six_digits(self, auth, delivery):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.request_password_reset(EMAIL)
        code = delivery.code_for(EMAIL)
        assert len(code) == 6 and code.isdigit()


class TestProfile:

    @pytest.mark.asyncio
    async def test_requires_sign_in(self, auth):
        with pytest.raises(NotAuthenticatedError):
            await auth.update_user_profile(name="Ana")

    @pytest.mark.asyncio
    async def test_updates_directory_and_projection(self, auth, wiring):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)

        updated = await auth.update_user_profile(name="Ana Maria", email="am@example.com")

        assert auth.current_user == updated
        assert (await restarted(wiring).restore()).name == "Ana Maria"
        await auth.sign_out()
        assert (await auth.sign_in("am@example.com", PASSWORD)).name == "Ana Maria"

    @pytest.mark.asyncio
    async def test_email_taken_by_other_account(self, auth):
        await auth.sign_up("other@example.com", "Other", PASSWORD)
        await auth.sign_out()
        await auth.sign_up(EMAIL, "Ana", PASSWORD)

        with pytest.raises(DuplicateEmailError):
            await auth.update_user_profile(email="other@example.com")
        assert auth.current_user.email == EMAIL

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, auth):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        with pytest.raises(InvalidInputError):
            await auth.update_user_profile(email="not-an-email")

    @pytest.mark.asyncio
    async def test_email_with_surrounding_spaces_rejected(self, auth):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        with pytest.raises(InvalidInputError):
            await auth.update_user_profile(email=" am@example.com ")
        assert auth.current_user.email == EMAIL


class TestAuditTrail:

    @pytest.mark.asyncio
    async def test_events_carry_no_secrets(self, auth, audit_store, delivery):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        await auth.request_password_reset(EMAIL)
        code = delivery.code_for(EMAIL)
        await auth.reset_password(EMAIL, code, "newpass1")
        with pytest.raises(InvalidCredentialsError):
            await auth.sign_in(EMAIL, "wrong-password")

        dump = " ".join(audit_store.snapshot().values())
        assert PASSWORD not in dump
        assert "newpass1" not in dump
        assert "wrong-password" not in dump
        assert '"code"' not in dump
        assert "$2b$" not in dump

    @pytest.mark.asyncio
    async def test_failed_sign_in_is_recorded(self, auth, audit_storage):
        await auth.sign_up(EMAIL, "Ana", PASSWORD)
        with pytest.raises(InvalidCredentialsError):
            await auth.sign_in(EMAIL, "wrong-password")

        failures = [
            e for e in await audit_storage.get_recent_events()
            if e.event_type.value == "sign_in_failed"
        ]
        assert len(failures) == 1
        assert failures[0].error_code == "auth/wrong-password"
