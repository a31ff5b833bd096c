"""
Keyspace tests.

Verifies the key layout:
- key_for is deterministic and injective within a namespace
- strip_namespace is the exact inverse of key_for
- Separator-bearing and empty identifiers are rejected
- Media keys parse into path / name / id, malformed ones fail loudly
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cms.errors.exceptions import InvalidIdentifierError, MalformedKeyError
from cms.storage.keyspace import KeyspaceMapper, Namespace


@pytest.fixture
def keyspace():
    return KeyspaceMapper()


# --- Entry keys ---


def test_key_layout(keyspace):
    assert keyspace.key_for(Namespace.PUBLISHED, "blog", "hello.md") == "published/blog/hello.md"
    assert keyspace.key_for(Namespace.UNPUBLISHED, "blog", "hello.md") == "unpublished/blog/hello.md"


def test_key_for_is_deterministic(keyspace):
    first = keyspace.key_for(Namespace.PUBLISHED, "blog", "x")
    second = keyspace.key_for(Namespace.PUBLISHED, "blog", "x")
    assert first == second


def test_key_for_is_injective(keyspace):
    """Distinct (collection, slug) pairs never share a key."""
    pairs = [("blog", "a"), ("blog", "b"), ("news", "a"), ("blo", "ga"), ("b", "loga")]
    keys = {keyspace.key_for(Namespace.PUBLISHED, c, s) for c, s in pairs}
    assert len(keys) == len(pairs)


def test_namespaces_do_not_collide(keyspace):
    published = keyspace.key_for(Namespace.PUBLISHED, "blog", "a")
    unpublished = keyspace.key_for(Namespace.UNPUBLISHED, "blog", "a")
    assert published != unpublished


def test_custom_prefixes():
    keyspace = KeyspaceMapper(published_prefix="live", unpublished_prefix="drafts", media_prefix="uploads")
    assert keyspace.key_for(Namespace.PUBLISHED, "blog", "a") == "live/blog/a"
    assert keyspace.prefix_for(Namespace.UNPUBLISHED) == "drafts/"
    assert keyspace.media_key("cat.png", "abc") == "uploads/cat.png/abc"


@pytest.mark.parametrize("collection,slug", [
    ("", "a"),
    ("blog", ""),
    ("blog/2024", "a"),
    ("blog", "2024/a"),
])
def test_invalid_identifiers_rejected(keyspace, collection, slug):
    with pytest.raises(InvalidIdentifierError):
        keyspace.key_for(Namespace.PUBLISHED, collection, slug)


def test_strip_namespace_inverts_key_for(keyspace):
    prefix = keyspace.prefix_for(Namespace.PUBLISHED, "blog")
    key = keyspace.key_for(Namespace.PUBLISHED, "blog", "post1.md")
    assert keyspace.strip_namespace(key, prefix) == "post1.md"


def test_strip_namespace_rejects_foreign_key(keyspace):
    with pytest.raises(InvalidIdentifierError):
        keyspace.strip_namespace("media/cat.png/1", "published/blog/")


def test_split_entry_key(keyspace):
    key = keyspace.key_for(Namespace.UNPUBLISHED, "blog", "hello.md")
    assert keyspace.split_entry_key(Namespace.UNPUBLISHED, key) == ("blog", "hello.md")


def test_split_entry_key_rejects_legacy_layout(keyspace):
    with pytest.raises(MalformedKeyError):
        keyspace.split_entry_key(Namespace.UNPUBLISHED, "unpublished/content/blog/hello.md")


# --- Media keys ---


def test_media_key_round_trip(keyspace):
    key = keyspace.media_key("static/img/cat.png", "abc123")
    assert key == "media/static/img/cat.png/abc123"

    parts = keyspace.parse_media_key(key)
    assert parts.path == "static/img/cat.png"
    assert parts.name == "cat.png"
    assert parts.asset_id == "abc123"
    assert parts.folder == "static/img"


def test_media_key_without_folder(keyspace):
    parts = keyspace.parse_media_key(keyspace.media_key("/cat.png/", "abc"))
    assert parts.path == "cat.png"
    assert parts.folder == ""


@pytest.mark.parametrize("key", [
    "media/abc",            # fewer than three segments
    "media",
    "media//abc",           # empty segment
    "published/blog/a",     # wrong namespace
])
def test_malformed_media_keys_fail(keyspace, key):
    with pytest.raises(MalformedKeyError):
        keyspace.parse_media_key(key)


def test_media_path_rejects_relative_segments(keyspace):
    with pytest.raises(InvalidIdentifierError):
        keyspace.media_key("static/../secret.png", "abc")


def test_media_prefixes(keyspace):
    assert keyspace.media_path_prefix("static/img/cat.png") == "media/static/img/cat.png/"
    assert keyspace.media_folder_prefix("") == "media/"
    assert keyspace.media_folder_prefix("static/img/") == "media/static/img/"
