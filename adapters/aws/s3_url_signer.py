"""
AWS URL signer — presigned S3 GET URLs.

Signs with whatever credentials the store's client currently holds, so a
credential refresh applies to new URLs immediately.
"""

from adapters.aws.s3_object_store import S3ObjectStore
from cms.interfaces.url_signer import UrlSigner


class S3PresignedUrlSigner(UrlSigner):
    """Time-bounded retrieval URLs for private buckets."""

    def __init__(self, store: S3ObjectStore, expires_in: int = 3600):
        self.store = store
        self.expires_in = expires_in

    def url_for(self, key: str) -> str:
        return self.store.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.store.bucket, "Key": key},
            ExpiresIn=self.expires_in,
        )
