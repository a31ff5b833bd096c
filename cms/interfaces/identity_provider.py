"""
Identity Provider Interface

Cloud-agnostic abstraction for issuing and refreshing short-lived storage
credentials bound to an authenticated principal.
Implementations: CognitoIdentityProvider (AWS), StaticIdentityProvider (local).

The core never manages long-lived secrets. It holds the Session it was
given and asks the provider for a new one when it nears expiry.
"""

from abc import ABC, abstractmethod

from cms.models.session import Session


class IdentityProvider(ABC):
    """Abstract base class for authentication and credential refresh."""

    @abstractmethod
    async def authenticate(self, email: str, password: str) -> Session:
        """
        Log a user in.

        Returns:
            A Session carrying tokens and storage credentials

        Raises:
            AuthError: If the credentials are rejected
        """
        ...

    @abstractmethod
    async def refresh(self, session: Session) -> Session:
        """
        Exchange a session's refresh token for fresh tokens and credentials.

        Raises:
            AuthError: If the session can no longer be refreshed
        """
        ...

    @abstractmethod
    async def sign_out(self, session: Session) -> None:
        """Revoke the session's tokens where the provider supports it."""
        ...
