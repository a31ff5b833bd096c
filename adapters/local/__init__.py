from adapters.local.memory_store import InMemoryObjectStore
from adapters.local.public_url_signer import PublicUrlSigner
from adapters.local.static_identity import StaticIdentityProvider

__all__ = [
    "InMemoryObjectStore",
    "PublicUrlSigner",
    "StaticIdentityProvider",
]
