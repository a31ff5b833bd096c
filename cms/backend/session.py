"""
Session manager.

Holds the externally issued Session for one backend instance. There is no
module-level session: two backends in one process never share credentials.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from cms.errors.exceptions import AuthError
from cms.interfaces.identity_provider import IdentityProvider
from cms.models.session import Session, StorageCredentials

logger = logging.getLogger("cms.session")

DEFAULT_REFRESH_MARGIN = timedelta(minutes=5)


class SessionManager:
    """Tracks the current session and refreshes it ahead of expiry."""

    def __init__(
        self,
        provider: IdentityProvider,
        on_credentials: Optional[Callable[[StorageCredentials], None]] = None,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
    ):
        self.provider = provider
        self.on_credentials = on_credentials
        self.refresh_margin = refresh_margin
        self._session: Optional[Session] = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Optional[Session]:
        return self._session

    async def login(self, email: str, password: str) -> Session:
        session = await self.provider.authenticate(email, password)
        self._install(session)
        logger.info(f"[session] Logged in {session.user.email or session.user.user_id}")
        return session

    async def restore(self, session: Session) -> Session:
        """Adopt a previously issued session, refreshing it if it's about to expire."""
        self._install(session)
        return await self.ensure_fresh()

    async def ensure_fresh(self) -> Session:
        """
        The current session, refreshed first if its credentials expire
        within the margin.

        Raises:
            AuthError: Not logged in, or the refresh was rejected
        """
        async with self._lock:
            if self._session is None:
                raise AuthError("Not logged in")
            if self._session.needs_refresh(self.refresh_margin):
                logger.info(f"[session] Refreshing credentials for {self._session.user.user_id[:8]}...")
                self._install(await self.provider.refresh(self._session))
            return self._session

    async def logout(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            await self.provider.sign_out(session)
            logger.info(f"[session] Logged out {session.user.email or session.user.user_id}")

    def _install(self, session: Session) -> None:
        self._session = session
        if session.credentials is not None and self.on_credentials is not None:
            self.on_credentials(session.credentials)
