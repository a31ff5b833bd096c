"""
Wires AWS adapters into an ObjectStoreBackend.

    S3ObjectStore            the bucket
    S3PresignedUrlSigner     media URLs (PublicUrlSigner when public_base_url is set)
    CognitoIdentityProvider  logins, when the pool ids are configured
"""

from adapters.aws.cognito_identity import CognitoIdentityProvider
from adapters.aws.s3_object_store import S3ObjectStore
from adapters.aws.s3_url_signer import S3PresignedUrlSigner
from adapters.local.public_url_signer import PublicUrlSigner  # Public buckets need no signing
from cms.backend.backend import ObjectStoreBackend
from cms.models.config import BackendConfig


def build_backend(config: BackendConfig, with_identity: bool = True) -> ObjectStoreBackend:
    """
    Build a backend for the configured bucket.

    with_identity=False uses the ambient AWS credential chain instead of
    Cognito logins (admin tooling, CI).
    """
    store = S3ObjectStore.from_config(config)

    if config.public_base_url:
        signer = PublicUrlSigner(config.public_base_url)
    else:
        signer = S3PresignedUrlSigner(store, expires_in=config.url_expires_in)

    identity = None
    if with_identity and config.has_identity_pool:
        identity = CognitoIdentityProvider.from_config(config)

    return ObjectStoreBackend(config, store, signer, identity=identity)
