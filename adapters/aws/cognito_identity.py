"""
AWS Identity Provider — Cognito.

Login flow:
  1. cognito-idp InitiateAuth (USER_PASSWORD_AUTH) -> id/access/refresh tokens
  2. cognito-identity GetId + GetCredentialsForIdentity, using the id token
     as the login for the user pool -> temporary S3 credentials

Refresh repeats both steps with REFRESH_TOKEN_AUTH. The id token's claims
are read without verification; Cognito issued them over TLS moments ago.

The id token from Cognito contains:
  - sub: Cognito user ID
  - email: User email
  - name: Display name (optional attribute)
"""

import asyncio
import base64
import json
import logging
from datetime import timezone
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cms.errors.exceptions import AuthError, CmsError, ConfigurationError, TransientStoreError
from cms.interfaces.identity_provider import IdentityProvider
from cms.models.config import BackendConfig
from cms.models.session import Session, StorageCredentials, User

logger = logging.getLogger("cms.cognito")

_TRANSIENT_CODES = {"TooManyRequestsException", "InternalErrorException", "LimitExceededException"}
_CONFIG_CODES = {"ResourceNotFoundException", "InvalidParameterException"}


class CognitoIdentityProvider(IdentityProvider):
    """Cognito user pool login + identity pool storage credentials."""

    def __init__(
        self,
        user_pool_id: str,
        client_id: str,
        identity_pool_id: str,
        region: str = "us-east-1",
        idp_client=None,
        identity_client=None,
    ):
        self.user_pool_id = user_pool_id
        self.client_id = client_id
        self.identity_pool_id = identity_pool_id
        self.region = region
        self.idp = idp_client or boto3.client("cognito-idp", region_name=region)
        self.identity = identity_client or boto3.client("cognito-identity", region_name=region)

    @classmethod
    def from_config(cls, config: BackendConfig) -> "CognitoIdentityProvider":
        if not config.has_identity_pool:
            raise ConfigurationError(
                "Missing required setting 'user_pool_id' / 'client_id' / 'identity_pool_id'"
            )
        return cls(
            user_pool_id=config.user_pool_id,
            client_id=config.client_id,
            identity_pool_id=config.identity_pool_id,
            region=config.region,
        )

    @property
    def login_provider(self) -> str:
        return f"cognito-idp.{self.region}.amazonaws.com/{self.user_pool_id}"

    async def authenticate(self, email: str, password: str) -> Session:
        response = await self._call(
            self.idp.initiate_auth,
            AuthFlow="USER_PASSWORD_AUTH",
            ClientId=self.client_id,
            AuthParameters={"USERNAME": email, "PASSWORD": password},
        )
        if "ChallengeName" in response:
            # NEW_PASSWORD_REQUIRED, MFA etc. belong to the login UI
            raise AuthError(f"Login requires the '{response['ChallengeName']}' challenge")

        result = response["AuthenticationResult"]
        session = await self._session_from_tokens(result, result.get("RefreshToken", ""))
        logger.info(f"Cognito login: user={session.user.user_id[:8]}... email={session.user.email}")
        return session

    async def refresh(self, session: Session) -> Session:
        if not session.refresh_token:
            raise AuthError("Session has no refresh token, log in again")
        response = await self._call(
            self.idp.initiate_auth,
            AuthFlow="REFRESH_TOKEN_AUTH",
            ClientId=self.client_id,
            AuthParameters={"REFRESH_TOKEN": session.refresh_token},
        )
        result = response["AuthenticationResult"]
        # Cognito only returns a refresh token when it rotates
        return await self._session_from_tokens(result, result.get("RefreshToken") or session.refresh_token)

    async def sign_out(self, session: Session) -> None:
        if not session.access_token:
            return
        try:
            await self._call(self.idp.global_sign_out, AccessToken=session.access_token)
        except AuthError:
            # Token already expired or revoked
            logger.info(f"Sign-out for {session.user.user_id[:8]}...: session already invalid")

    # --- Helpers ---

    async def _session_from_tokens(self, result: dict, refresh_token: str) -> Session:
        id_token = result["IdToken"]
        claims = decode_claims(id_token)
        logins = {self.login_provider: id_token}

        identity = await self._call(
            self.identity.get_id,
            IdentityPoolId=self.identity_pool_id,
            Logins=logins,
        )
        response = await self._call(
            self.identity.get_credentials_for_identity,
            IdentityId=identity["IdentityId"],
            Logins=logins,
        )
        creds = response["Credentials"]
        expiration = creds.get("Expiration")
        if expiration is not None and expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=timezone.utc)

        return Session(
            user=User(
                user_id=claims.get("sub", ""),
                email=claims.get("email", ""),
                name=claims.get("name", ""),
            ),
            token=id_token,
            refresh_token=refresh_token,
            access_token=result.get("AccessToken", ""),
            credentials=StorageCredentials(
                access_key_id=creds["AccessKeyId"],
                secret_access_key=creds["SecretKey"],
                session_token=creds.get("SessionToken"),
                expires_at=expiration,
            ),
            attributes={"identity_id": identity["IdentityId"]},
        )

    async def _call(self, method, **params) -> dict:
        try:
            return await asyncio.to_thread(lambda: method(**params))
        except ClientError as e:
            raise _translate_error(e) from e
        except BotoCoreError as e:
            raise TransientStoreError(f"Cognito request failed: {e}") from e


def decode_claims(token: str) -> dict:
    """Decode a JWT payload (second segment) without verifying it."""
    parts = token.split(".")
    if len(parts) != 3:
        raise AuthError("Malformed JWT")

    # Base64-decode payload (add padding if needed)
    payload_b64 = parts[1]
    padding = 4 - len(payload_b64) % 4
    if padding != 4:
        payload_b64 += "=" * padding

    try:
        return json.loads(base64.urlsafe_b64decode(payload_b64))
    except (ValueError, UnicodeDecodeError) as e:
        raise AuthError(f"Invalid token: {e}")


def _translate_error(error: ClientError, key: Optional[str] = None) -> CmsError:
    code = error.response.get("Error", {}).get("Code", "")
    if code in _TRANSIENT_CODES:
        return TransientStoreError(str(error), key=key)
    if code in _CONFIG_CODES:
        return ConfigurationError(str(error), key=key)
    return AuthError(str(error), key=key)
