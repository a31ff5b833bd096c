"""
Metadata codec: WorkflowMetadata to and from object store user metadata.

Stores only accept ASCII header-safe metadata values, so every value is
percent-encoded (UTF-8, nothing left unescaped). Names are lowercase because
S3 lowercases user metadata keys on the way back.
"""

from enum import Enum
from typing import Optional
from urllib.parse import quote, unquote

from cms.errors.exceptions import MissingMetadataError
from cms.models.workflow import WorkflowMetadata

# WorkflowMetadata attribute -> stored metadata name
FIELD_NAMES = {
    "status": "status",
    "slug": "slug",
    "collection": "collection",
    "title": "title",
    "description": "description",
    "legacy_path": "legacy-path",
    "commit_message": "commit-message",
}


class KeyScheme(Enum):
    """Which key layout an object was written under."""

    CANONICAL = "canonical"     # {namespace}/{collection}/{slug}
    LEGACY = "legacy"           # {namespace}/{file path}


# Fields a decoder cannot do without, checked in order
REQUIRED_FIELDS = {
    KeyScheme.CANONICAL: ("status", "slug"),
    KeyScheme.LEGACY: ("status", "collection"),
}


def encode_value(value: str) -> str:
    return quote(value, safe="", encoding="utf-8", errors="strict")


def decode_value(value: str) -> str:
    return unquote(value, encoding="utf-8", errors="strict")


def encode(metadata: WorkflowMetadata) -> dict[str, str]:
    """Encode present fields; absent (None) fields are omitted entirely."""
    encoded = {}
    for attr, name in FIELD_NAMES.items():
        value = getattr(metadata, attr)
        if value is not None:
            encoded[name] = encode_value(value)
    return encoded


def decode(
    raw: dict[str, str],
    scheme: KeyScheme = KeyScheme.CANONICAL,
    key: Optional[str] = None,
) -> WorkflowMetadata:
    """
    Decode stored metadata. Unknown names are ignored.

    Raises:
        MissingMetadataError: Naming the first absent required field
    """
    lowered = {k.lower(): v for k, v in raw.items()}
    values = {}
    for attr, name in FIELD_NAMES.items():
        if name in lowered:
            values[attr] = decode_value(lowered[name])

    for attr in REQUIRED_FIELDS[scheme]:
        if attr not in values:
            raise MissingMetadataError(FIELD_NAMES[attr], key=key)

    return WorkflowMetadata(**values)


def detect_scheme(raw: dict[str, str]) -> KeyScheme:
    """Objects written before the slug-keyed layout carry no slug field."""
    lowered = {k.lower() for k in raw}
    return KeyScheme.CANONICAL if FIELD_NAMES["slug"] in lowered else KeyScheme.LEGACY
