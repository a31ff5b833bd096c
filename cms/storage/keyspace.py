"""
Keyspace: translation between domain identifiers and object keys.

Layout (canonical):
    {published}/{collection}/{slug}
    {unpublished}/{collection}/{slug}
    {media}/{folder}/{name}/{id}

Every method is pure. Collection and slug values are single key segments:
empty values and values containing the separator are rejected rather than
silently producing keys that collide across collections.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from cms.errors.exceptions import InvalidIdentifierError, MalformedKeyError

SEPARATOR = "/"


class Namespace(Enum):
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"
    MEDIA = "media"


@dataclass(frozen=True)
class MediaKeyParts:
    """A media key split into its domain parts."""

    path: str               # folder + name
    name: str
    asset_id: str

    @property
    def folder(self) -> str:
        return self.path[: -len(self.name)].rstrip(SEPARATOR)


class KeyspaceMapper:
    """Maps (namespace, collection, slug) and media paths to object keys."""

    def __init__(
        self,
        published_prefix: str = "published",
        unpublished_prefix: str = "unpublished",
        media_prefix: str = "media",
    ):
        self._prefixes = {
            Namespace.PUBLISHED: published_prefix,
            Namespace.UNPUBLISHED: unpublished_prefix,
            Namespace.MEDIA: media_prefix,
        }

    @classmethod
    def from_config(cls, config) -> "KeyspaceMapper":
        return cls(
            published_prefix=config.published_prefix,
            unpublished_prefix=config.unpublished_prefix,
            media_prefix=config.media_prefix,
        )

    # --- Entries ---

    def key_for(self, namespace: Namespace, collection: str, slug: str) -> str:
        """Object key for an entry. Deterministic and injective per namespace."""
        _check_segment("collection", collection)
        _check_segment("slug", slug)
        return f"{self._prefixes[namespace]}{SEPARATOR}{collection}{SEPARATOR}{slug}"

    def prefix_for(self, namespace: Namespace, collection: Optional[str] = None) -> str:
        """Listing prefix for a namespace, or a collection within it. Always ends in '/'."""
        prefix = f"{self._prefixes[namespace]}{SEPARATOR}"
        if collection is None:
            return prefix
        _check_segment("collection", collection)
        return f"{prefix}{collection}{SEPARATOR}"

    @staticmethod
    def strip_namespace(key: str, prefix: str) -> str:
        """Remove exactly `prefix` from `key`. Inverse of key_for for its own prefix."""
        if not key.startswith(prefix):
            raise InvalidIdentifierError(f"Key '{key}' is not under prefix '{prefix}'", key=key)
        return key[len(prefix):]

    def split_entry_key(self, namespace: Namespace, key: str) -> tuple[str, str]:
        """Recover (collection, slug) from a key produced by key_for."""
        relative = self.strip_namespace(key, self.prefix_for(namespace))
        parts = relative.split(SEPARATOR)
        if len(parts) != 2 or not all(parts):
            raise MalformedKeyError(
                f"Key '{key}' is not of the form {self._prefixes[namespace]}/{{collection}}/{{slug}}",
                key=key,
            )
        return parts[0], parts[1]

    def legacy_key_for(self, namespace: Namespace, file_path: str) -> str:
        """Historical path-keyed layout: {namespace}/{file path}. Read only for migration."""
        path = _normalize_path(file_path)
        return f"{self._prefixes[namespace]}{SEPARATOR}{path}"

    # --- Media ---

    def media_key(self, path: str, asset_id: str) -> str:
        """Object key for one upload of a media file. path is folder + name."""
        _check_segment("media id", asset_id)
        return f"{self.media_path_prefix(path)}{asset_id}"

    def media_path_prefix(self, path: str) -> str:
        """Prefix shared by every upload of a media path."""
        normalized = _normalize_path(path)
        return f"{self._prefixes[Namespace.MEDIA]}{SEPARATOR}{normalized}{SEPARATOR}"

    def media_folder_prefix(self, folder: str = "") -> str:
        """Listing prefix for a media folder ('' lists all media)."""
        root = self.prefix_for(Namespace.MEDIA)
        if not folder.strip(SEPARATOR):
            return root
        return f"{root}{_normalize_path(folder)}{SEPARATOR}"

    def parse_media_key(self, key: str) -> MediaKeyParts:
        """
        Split a media key: the last two segments are name and id, the rest
        (after the namespace) is the folder.

        Raises:
            MalformedKeyError: Fewer than three segments, an empty segment,
                or a key outside the media namespace
        """
        segments = key.split(SEPARATOR)
        if len(segments) < 3 or not all(segments):
            raise MalformedKeyError(f"Media key '{key}' has fewer than three segments", key=key)
        if segments[0] != self._prefixes[Namespace.MEDIA]:
            raise MalformedKeyError(f"Key '{key}' is not in the media namespace", key=key)
        return MediaKeyParts(
            path=SEPARATOR.join(segments[1:-1]),
            name=segments[-2],
            asset_id=segments[-1],
        )


def _check_segment(kind: str, value: str) -> None:
    if not value:
        raise InvalidIdentifierError(f"{kind} must not be empty")
    if SEPARATOR in value:
        raise InvalidIdentifierError(f"{kind} '{value}' must not contain '{SEPARATOR}'")


def _normalize_path(path: str) -> str:
    normalized = path.strip(SEPARATOR)
    segments = normalized.split(SEPARATOR)
    if not normalized or not all(segments):
        raise InvalidIdentifierError(f"Path '{path}' must be non-empty with no empty segments")
    if any(s in (".", "..") for s in segments):
        raise InvalidIdentifierError(f"Path '{path}' must not contain relative segments")
    return normalized
