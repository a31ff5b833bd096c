"""
Object Store Interface

Cloud-agnostic abstraction for a key-addressed object store.
Implementations: S3ObjectStore (AWS / S3-compatible), InMemoryObjectStore (local).

The store offers no transactions, no secondary indexes and no schema.
Retries, transport and signing are the implementation's concern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from cms.models.session import StorageCredentials


@dataclass
class ObjectHead:
    """Result of a head request."""

    key: str
    size: int = 0
    content_type: str = "application/octet-stream"
    metadata: dict[str, str] = field(default_factory=dict)
    etag: str = ""


@dataclass
class StoredObject:
    """Result of a get request: body plus head information."""

    key: str
    body: bytes
    content_type: str = "application/octet-stream"
    metadata: dict[str, str] = field(default_factory=dict)
    etag: str = ""

    @property
    def size(self) -> int:
        return len(self.body)

    def text(self) -> str:
        return self.body.decode("utf-8")


@dataclass
class ObjectSummary:
    """One key from a listing page."""

    key: str
    size: int = 0
    etag: str = ""


@dataclass
class ListPage:
    """
    One page of a prefix listing.

    When is_truncated is True, continuation_token resumes the listing.
    """

    objects: list[ObjectSummary] = field(default_factory=list)
    is_truncated: bool = False
    continuation_token: Optional[str] = None


class ObjectStore(ABC):
    """
    Abstract base class for the object store backing the CMS.

    All methods raise NotFoundError for missing keys (except delete),
    AuthError for credential problems and TransientStoreError for
    everything else the store reports.
    """

    @abstractmethod
    async def head(self, key: str) -> ObjectHead:
        """Fetch size, content type and metadata. Raises NotFoundError."""
        ...

    @abstractmethod
    async def get(self, key: str) -> StoredObject:
        """Fetch an object. Raises NotFoundError."""
        ...

    @abstractmethod
    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        """Store an object, replacing any existing body and metadata."""
        ...

    @abstractmethod
    async def copy(
        self,
        source_key: str,
        dest_key: str,
        metadata: Optional[dict[str, str]] = None,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        """
        Server-side copy.

        Args:
            source_key: Existing object. Raises NotFoundError if missing.
            dest_key: Destination, may equal source_key (in-place metadata update)
            metadata: None copies the source metadata; a dict replaces it
            content_type: Used when metadata is replaced
            cache_control: Used when metadata is replaced
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key succeeds."""
        ...

    @abstractmethod
    async def list_page(
        self,
        prefix: str,
        continuation_token: Optional[str] = None,
        max_keys: int = 1000,
    ) -> ListPage:
        """List one page of keys under a prefix."""
        ...

    def use_credentials(self, credentials: StorageCredentials) -> None:
        """Swap in fresh credentials. Stores without credentials ignore this."""
        return None
