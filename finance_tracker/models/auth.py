"""
Account Models for Finance Tracker

These models define the persisted shapes of the authentication subsystem.
Field aliases keep the camelCase JSON layout used on disk, so a stored
record round-trips through `to_storage()` / `model_validate()` unchanged.

DESIGN DECISION: The password digest only ever lives on UserRecord.
Everything handed to the UI or to the per-user stores is a PublicUser,
which is immutable and has no credential fields at all.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from finance_tracker.models.common import from_epoch_ms, to_epoch_ms


class PublicUser(BaseModel):
    """
    The public projection of a user (no digest).

    This is the "actor" passed to every per-user operation.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    email: str
    name: str


class UserRecord(BaseModel):
    """
    A registered user as stored in the user directory.

    Owned exclusively by the directory; callers get fresh copies.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Random unique user identifier"
    )
    email: str = Field(
        ...,
        min_length=3,
        description="Login email (unique, exact match)"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    password_digest: str = Field(
        ...,
        alias="passwordHash",
        min_length=1,
        description="bcrypt digest of password + current salt"
    )

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.id, email=self.email, name=self.name)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class Session(BaseModel):
    """
    A time-bounded signed-in state.

    At most one exists at a time. It expires, it is never refreshed.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    token: str = Field(
        ...,
        min_length=16,
        description="Random opaque session token"
    )
    expires_at: int = Field(
        ...,
        alias="expiresAt",
        gt=0,
        description="Absolute expiry, epoch milliseconds"
    )
    user_id: str = Field(
        ...,
        alias="userId",
        min_length=1,
    )

    @property
    def expires_at_datetime(self) -> datetime:
        return from_epoch_ms(self.expires_at)

    def is_expired(self, now: datetime) -> bool:
        """A session is valid strictly before its expiry instant."""
        return to_epoch_ms(now) >= self.expires_at

    def remaining_seconds(self, now: datetime) -> float:
        return max(0.0, (self.expires_at - to_epoch_ms(now)) / 1000)

    def to_storage(self) -> dict:
        return self.model_dump(by_alias=True)


class ResetCode(BaseModel):
    """An outstanding password reset code for one email."""

    code: str = Field(
        ...,
        pattern=r"^\d{6}$",
        description="6-digit numeric code"
    )
    expiry: int = Field(
        ...,
        gt=0,
        description="Absolute expiry, epoch milliseconds"
    )

    @property
    def expiry_datetime(self) -> datetime:
        return from_epoch_ms(self.expiry)

    def is_expired(self, now: datetime) -> bool:
        return to_epoch_ms(now) > self.expiry

    def to_storage(self) -> dict:
        return self.model_dump()


class ProfileUpdate(BaseModel):
    """
    Fields a signed-in user may change on their own profile.

    Only the name is trimmed. The email is kept exactly as typed, so one
    with surrounding whitespace fails the email check.
    """

    name: Optional[str] = None
    email: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.email is None
