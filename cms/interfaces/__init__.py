"""
CMS Interfaces: cloud-agnostic contracts.

All core code depends on these interfaces only.
Cloud-specific implementations live in adapters/.
"""

from cms.interfaces.object_store import (
    ObjectStore, ObjectHead, StoredObject, ObjectSummary, ListPage,
)
from cms.interfaces.identity_provider import IdentityProvider
from cms.interfaces.url_signer import UrlSigner

__all__ = [
    "ObjectStore", "ObjectHead", "StoredObject", "ObjectSummary", "ListPage",
    "IdentityProvider",
    "UrlSigner",
]
