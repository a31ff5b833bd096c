from cms.errors.exceptions import (
    CmsError, ConfigurationError, NotFoundError, TransientStoreError, AuthError,
    MissingMetadataError, InvalidIdentifierError, MalformedKeyError,
    InvalidStatusError, ListingLimitError,
)
from cms.errors.models import FriendlyError, ErrorSeverity
from cms.errors.handler import ErrorHandler

__all__ = [
    "CmsError", "ConfigurationError", "NotFoundError", "TransientStoreError", "AuthError",
    "MissingMetadataError", "InvalidIdentifierError", "MalformedKeyError",
    "InvalidStatusError", "ListingLimitError",
    "FriendlyError", "ErrorSeverity", "ErrorHandler",
]
