from cms.storage.keyspace import KeyspaceMapper, Namespace, MediaKeyParts, SEPARATOR
from cms.storage.metadata import KeyScheme
from cms.storage.listing import drain_listing, gather_bounded

__all__ = [
    "KeyspaceMapper", "Namespace", "MediaKeyParts", "SEPARATOR",
    "KeyScheme",
    "drain_listing", "gather_bounded",
]
