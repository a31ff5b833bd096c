from adapters.aws.s3_object_store import S3ObjectStore
from adapters.aws.s3_url_signer import S3PresignedUrlSigner
from adapters.aws.cognito_identity import CognitoIdentityProvider
from adapters.aws.factory import build_backend

__all__ = [
    "S3ObjectStore",
    "S3PresignedUrlSigner",
    "CognitoIdentityProvider",
    "build_backend",
]
