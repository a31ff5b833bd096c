"""
Cognito identity provider tests.

Both Cognito clients are mocked. Verifies the login and refresh flows,
credential expiry handling and error translation.
"""

import base64
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from adapters.aws.cognito_identity import CognitoIdentityProvider, decode_claims
from cms.errors.exceptions import AuthError, ConfigurationError, TransientStoreError
from cms.models.config import BackendConfig


def _make_client_error(code: str, message: str = "error", operation: str = "InitiateAuth") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


def _jwt(claims: dict) -> str:
    def segment(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")
    return f"{segment({'alg': 'RS256'})}.{segment(claims)}.signature"


ID_TOKEN = _jwt({"sub": "user-123-abc", "email": "ed@example.com", "name": "Ed"})


# --- Fixtures ---


@pytest.fixture
def idp():
    client = MagicMock()
    client.initiate_auth.return_value = {
        "AuthenticationResult": {
            "IdToken": ID_TOKEN,
            "AccessToken": "access",
            "RefreshToken": "refresh",
        }
    }
    return client


@pytest.fixture
def identity():
    client = MagicMock()
    client.get_id.return_value = {"IdentityId": "eu-west-1:identity"}
    client.get_credentials_for_identity.return_value = {
        "IdentityId": "eu-west-1:identity",
        "Credentials": {
            "AccessKeyId": "ASIA",
            "SecretKey": "secret",
            "SessionToken": "session",
            "Expiration": datetime(2030, 1, 1, 12, 0, 0),
        },
    }
    return client


@pytest.fixture
def provider(idp, identity):
    return CognitoIdentityProvider(
        user_pool_id="eu-west-1_pool",
        client_id="client",
        identity_pool_id="eu-west-1:ids",
        region="eu-west-1",
        idp_client=idp,
        identity_client=identity,
    )


# --- Login ---


async def test_authenticate(provider, idp, identity):
    session = await provider.authenticate("ed@example.com", "pw")

    idp.initiate_auth.assert_called_once_with(
        AuthFlow="USER_PASSWORD_AUTH",
        ClientId="client",
        AuthParameters={"USERNAME": "ed@example.com", "PASSWORD": "pw"},
    )
    logins = {"cognito-idp.eu-west-1.amazonaws.com/eu-west-1_pool": ID_TOKEN}
    identity.get_id.assert_called_once_with(IdentityPoolId="eu-west-1:ids", Logins=logins)
    identity.get_credentials_for_identity.assert_called_once_with(
        IdentityId="eu-west-1:identity", Logins=logins,
    )

    assert session.user.user_id == "user-123-abc"
    assert session.user.email == "ed@example.com"
    assert session.user.name == "Ed"
    assert session.token == ID_TOKEN
    assert session.refresh_token == "refresh"
    assert session.credentials.access_key_id == "ASIA"
    assert session.credentials.expires_at.tzinfo is not None
    assert session.attributes["identity_id"] == "eu-west-1:identity"


async def test_challenge_is_rejected(provider, idp):
    idp.initiate_auth.return_value = {"ChallengeName": "NEW_PASSWORD_REQUIRED", "Session": "s"}
    with pytest.raises(AuthError, match="NEW_PASSWORD_REQUIRED"):
        await provider.authenticate("ed@example.com", "pw")


@pytest.mark.parametrize("code,exc_cls", [
    ("NotAuthorizedException", AuthError),
    ("UserNotFoundException", AuthError),
    ("TooManyRequestsException", TransientStoreError),
    ("ResourceNotFoundException", ConfigurationError),
])
async def test_login_errors(provider, idp, code, exc_cls):
    idp.initiate_auth.side_effect = _make_client_error(code)
    with pytest.raises(exc_cls):
        await provider.authenticate("ed@example.com", "pw")


# --- Refresh ---


async def test_refresh_keeps_refresh_token(provider, idp):
    session = await provider.authenticate("ed@example.com", "pw")
    idp.initiate_auth.return_value = {"AuthenticationResult": {"IdToken": ID_TOKEN, "AccessToken": "access2"}}

    refreshed = await provider.refresh(session)

    assert idp.initiate_auth.call_args.kwargs["AuthFlow"] == "REFRESH_TOKEN_AUTH"
    assert idp.initiate_auth.call_args.kwargs["AuthParameters"] == {"REFRESH_TOKEN": "refresh"}
    assert refreshed.refresh_token == "refresh"
    assert refreshed.access_token == "access2"


async def test_refresh_without_token(provider):
    session = await provider.authenticate("ed@example.com", "pw")
    session.refresh_token = ""
    with pytest.raises(AuthError):
        await provider.refresh(session)


async def test_near_expiry_needs_refresh(provider, identity):
    identity.get_credentials_for_identity.return_value["Credentials"]["Expiration"] = (
        datetime.now(timezone.utc) + timedelta(minutes=2)
    )
    session = await provider.authenticate("ed@example.com", "pw")
    assert session.needs_refresh(timedelta(minutes=5))


# --- Sign-out ---


async def test_sign_out(provider, idp):
    session = await provider.authenticate("ed@example.com", "pw")
    await provider.sign_out(session)
    idp.global_sign_out.assert_called_once_with(AccessToken="access")


async def test_sign_out_with_revoked_token(provider, idp):
    session = await provider.authenticate("ed@example.com", "pw")
    idp.global_sign_out.side_effect = _make_client_error("NotAuthorizedException")
    await provider.sign_out(session)


# --- Config and claims ---


def test_from_config_requires_pool_ids():
    with pytest.raises(ConfigurationError):
        CognitoIdentityProvider.from_config(BackendConfig(bucket="site"))


def test_decode_claims():
    assert decode_claims(ID_TOKEN)["email"] == "ed@example.com"


@pytest.mark.parametrize("token", ["not-a-jwt", "a.!!!.c"])
def test_decode_malformed_claims(token):
    with pytest.raises(AuthError):
        decode_claims(token)
