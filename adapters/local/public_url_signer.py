"""
Public URL signer.

For public buckets, CDNs in front of a bucket, or local development
servers. URLs are plain joins and never expire.
"""

from urllib.parse import quote

from cms.interfaces.url_signer import UrlSigner


class PublicUrlSigner(UrlSigner):
    """Builds {base_url}/{key} retrieval URLs."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{quote(key)}"
