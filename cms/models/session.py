"""
Session models. Issued by an external identity provider, opaque to the core.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional


@dataclass(frozen=True)
class StorageCredentials:
    """Short-lived object store credentials bound to a principal."""

    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None
    expires_at: Optional[datetime] = None     # None = does not expire

    def expires_within(self, margin: timedelta) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) + margin >= self.expires_at


@dataclass
class User:
    """The authenticated principal."""

    user_id: str
    email: str = ""
    name: str = ""


@dataclass
class Session:
    """Tokens and storage credentials for one logged-in user."""

    user: User
    token: str                              # Identity token handed to callers
    refresh_token: str = ""
    access_token: str = ""
    credentials: Optional[StorageCredentials] = None
    attributes: dict = field(default_factory=dict)

    def needs_refresh(self, margin: timedelta) -> bool:
        return self.credentials is not None and self.credentials.expires_within(margin)
