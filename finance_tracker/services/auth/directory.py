"""
User Directory

Every registered user is stored as its own record, plus an email index
pointing at the record's id. Registering or editing one user therefore
never rewrites anyone else's data.

Salts live on their own keys next to the records. Whoever changes a
digest changes the salt in the same call, so the stored digest is always
computed with the stored salt.
"""

from typing import Optional
from uuid import uuid4

from pydantic import ValidationError

from finance_tracker.models.auth import UserRecord
from finance_tracker.services.auth.errors import DuplicateEmailError, UserNotFoundError
from finance_tracker.services.storage import keys
from finance_tracker.services.storage.interface import (
    KeyValueStoreInterface,
    StorageCorruptedError,
)


class UserDirectory:
    """Lookup and mutation of registered users."""

    def __init__(self, store: KeyValueStoreInterface):
        self._store = store

    async def _read(self, user_id: str) -> Optional[UserRecord]:
        data = await self._store.get_json(keys.user_record_key(user_id))
        if data is None:
            return None
        try:
            return UserRecord.model_validate(data)
        except ValidationError as e:
            raise StorageCorruptedError(f"Unreadable user record {user_id!r}: {e}") from e

    async def _write(self, record: UserRecord) -> None:
        await self._store.set_json(keys.user_record_key(record.id), record.to_storage())

    async def _require(self, user_id: str) -> UserRecord:
        record = await self._read(user_id)
        if record is None:
            raise UserNotFoundError()
        return record

    async def get(self, user_id: str) -> Optional[UserRecord]:
        return await self._read(user_id)

    async def find_by_email(self, email: str) -> Optional[UserRecord]:
        """Exact, case-sensitive lookup."""
        user_id = await self._store.get_item(keys.user_email_key(email))
        if user_id is None:
            return None
        record = await self._read(user_id)
        # index entries left behind by an interrupted email change
        if record is None or record.email != email:
            return None
        return record

    async def register(
        self,
        email: str,
        name: str,
        password_digest: str,
        salt: str,
    ) -> str:
        """
        Create a user.

        Returns:
            The new user's id

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError()

        user_id = str(uuid4())
        record = UserRecord(
            id=user_id,
            email=email,
            name=name,
            password_digest=password_digest,
        )

        await self._store.set_item(keys.salt_key(user_id), salt)
        await self._write(record)
        await self._store.set_item(keys.user_email_key(email), user_id)
        return user_id

    async def load_salt(self, user_id: str) -> Optional[str]:
        return await self._store.get_item(keys.salt_key(user_id))

    async def update_password(self, user_id: str, new_digest: str, new_salt: str) -> None:
        """
        Replace a user's salt and digest.

        Raises:
            UserNotFoundError: If no user has this id
        """
        record = await self._require(user_id)
        record.password_digest = new_digest
        await self._store.set_item(keys.salt_key(user_id), new_salt)
        await self._write(record)

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> UserRecord:
        """
        Merge profile fields into a user record.

        Raises:
            UserNotFoundError: If no user has this id
            DuplicateEmailError: If the new email belongs to someone else
        """
        record = await self._require(user_id)
        old_email = record.email

        if email is not None and email != old_email:
            holder = await self.find_by_email(email)
            if holder is not None and holder.id != user_id:
                raise DuplicateEmailError()
            record.email = email
        if name is not None:
            record.name = name

        await self._write(record)
        if record.email != old_email:
            await self._store.set_item(keys.user_email_key(record.email), user_id)
            await self._store.remove_item(keys.user_email_key(old_email))

        return record.model_copy()
