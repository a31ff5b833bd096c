from cms.backend.session import SessionManager
from cms.backend.backend import ObjectStoreBackend

__all__ = ["SessionManager", "ObjectStoreBackend"]
