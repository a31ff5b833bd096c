"""
Exception taxonomy for the CMS backend.

Only the documented not-found-as-absence cases are swallowed internally
(existence checks, membership filtering, idempotent deletes). Everything
else propagates to the caller unchanged.
"""

from typing import Optional


class CmsError(Exception):
    """Base exception for all backend failures."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.message = message
        self.key = key
        super().__init__(message)


class ConfigurationError(CmsError):
    """Required settings are absent or invalid. Raised at construction, never retried."""


class NotFoundError(CmsError):
    """A directly addressed object does not exist."""


class TransientStoreError(CmsError):
    """Network or server failure reported by the object store."""


class AuthError(CmsError):
    """Credential or session problem. The caller must re-authenticate."""


class MissingMetadataError(CmsError):
    """A stored object lacks a required workflow metadata field."""

    def __init__(self, field: str, key: Optional[str] = None):
        self.field = field
        where = f" on '{key}'" if key else ""
        super().__init__(f"Missing required metadata field '{field}'{where}", key=key)


class InvalidIdentifierError(CmsError):
    """A collection, slug or path cannot be mapped to an object key."""


class MalformedKeyError(InvalidIdentifierError):
    """A stored key does not follow the expected segment layout."""


class InvalidStatusError(CmsError):
    """A workflow status outside the configured set."""


class ListingLimitError(CmsError):
    """A prefix listing grew past the configured upper bound."""
