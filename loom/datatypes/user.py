"""User identity, login sessions, and linked external accounts."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from loom.datatypes.types import Record, Timestamp


class User(Record):
    kind: ClassVar[str] = "user"

    id: str
    email: str
    name: str | None = None
    encrypted_password: str
    created_at: Timestamp
    updated_at: Timestamp


class OAuthAccount(Record):
    kind: ClassVar[str] = "oauth_account"

    id: str
    user_id: str
    provider: str
    provider_user_id: str
    access_token: str
    refresh_token: str | None = None
    expires_at: Timestamp | None = None
    created_at: Timestamp
    updated_at: Timestamp

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class Session(Record):
    kind: ClassVar[str] = "session"

    id: str
    user_id: str
    token: str
    expires_at: Timestamp
    created_at: Timestamp

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
