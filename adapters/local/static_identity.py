"""
Local Identity Provider — reads from .env file.

For local development against MinIO or a personal bucket. No Cognito
dependency. A single user, configured through environment variables:

    CMS_LOCAL_EMAIL, CMS_LOCAL_PASSWORD
    AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_SESSION_TOKEN (optional)
"""

import logging
import os
import secrets

from adapters.local.env_file import load_env_file
from cms.errors.exceptions import AuthError, ConfigurationError
from cms.interfaces.identity_provider import IdentityProvider
from cms.models.session import Session, StorageCredentials, User

logger = logging.getLogger("cms.local.identity")


class StaticIdentityProvider(IdentityProvider):
    """
    Issues sessions carrying static credentials from the environment.
    Credentials never expire, so refresh just hands back the session.
    """

    def __init__(self, env_file: str = ".env"):
        load_env_file(env_file)
        self.email = os.getenv("CMS_LOCAL_EMAIL", "")
        self.password = os.getenv("CMS_LOCAL_PASSWORD", "")
        if not self.email or not self.password:
            raise ConfigurationError(
                "Missing required setting 'CMS_LOCAL_EMAIL' / 'CMS_LOCAL_PASSWORD'"
            )

    async def authenticate(self, email: str, password: str) -> Session:
        if email != self.email or not secrets.compare_digest(password, self.password):
            raise AuthError("Incorrect username or password")

        credentials = None
        access_key = os.getenv("AWS_ACCESS_KEY_ID", "")
        secret_key = os.getenv("AWS_SECRET_ACCESS_KEY", "")
        if access_key and secret_key:
            credentials = StorageCredentials(
                access_key_id=access_key,
                secret_access_key=secret_key,
                session_token=os.getenv("AWS_SESSION_TOKEN") or None,
            )

        return Session(
            user=User(user_id=f"local:{email}", email=email, name=email.split("@")[0]),
            token=secrets.token_urlsafe(32),
            credentials=credentials,
        )

    async def refresh(self, session: Session) -> Session:
        return session

    async def sign_out(self, session: Session) -> None:
        logger.debug(f"Local sign-out for {session.user.email}")
