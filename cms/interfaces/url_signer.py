"""
URL Signer Interface

Produces retrieval URLs for stored media.
Implementations: S3PresignedUrlSigner (AWS), PublicUrlSigner (public buckets, CDNs).
"""

from abc import ABC, abstractmethod


class UrlSigner(ABC):
    """Abstract base class for media retrieval URLs."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Return a URL granting read access to the object at key."""
        ...
