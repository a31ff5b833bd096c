"""
Local Object Store — in memory.

For local development and tests. No S3 dependency.
Mimics the S3 behaviours the core relies on: lowercased metadata keys,
COPY vs REPLACE metadata directives on copy, idempotent deletes and
paged listings with continuation tokens.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Optional

from cms.errors.exceptions import NotFoundError
from cms.interfaces.object_store import (
    ObjectStore, ObjectHead, StoredObject, ObjectSummary, ListPage,
)


@dataclass
class _Object:
    body: bytes
    content_type: str
    metadata: dict[str, str] = field(default_factory=dict)
    cache_control: Optional[str] = None

    @property
    def etag(self) -> str:
        return hashlib.md5(self.body).hexdigest()


class InMemoryObjectStore(ObjectStore):
    """Dict-backed object store for local development."""

    def __init__(self, max_page_size: int = 1000):
        self.max_page_size = max_page_size
        self.objects: dict[str, _Object] = {}
        self.operations: list[tuple[str, str]] = []   # (operation, key) in call order

    async def head(self, key: str) -> ObjectHead:
        self.operations.append(("head", key))
        obj = self._lookup(key)
        return ObjectHead(
            key=key,
            size=len(obj.body),
            content_type=obj.content_type,
            metadata=dict(obj.metadata),
            etag=obj.etag,
        )

    async def get(self, key: str) -> StoredObject:
        self.operations.append(("get", key))
        obj = self._lookup(key)
        return StoredObject(
            key=key,
            body=obj.body,
            content_type=obj.content_type,
            metadata=dict(obj.metadata),
            etag=obj.etag,
        )

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        self.operations.append(("put", key))
        self.objects[key] = _Object(
            body=bytes(body),
            content_type=content_type,
            metadata=_lower(metadata or {}),
            cache_control=cache_control,
        )

    async def copy(
        self,
        source_key: str,
        dest_key: str,
        metadata: Optional[dict[str, str]] = None,
        content_type: Optional[str] = None,
        cache_control: Optional[str] = None,
    ) -> None:
        self.operations.append(("copy", f"{source_key} -> {dest_key}"))
        source = self._lookup(source_key)
        if metadata is None:
            copied = _Object(source.body, source.content_type, dict(source.metadata), source.cache_control)
        else:
            copied = _Object(
                source.body,
                content_type or "application/octet-stream",
                _lower(metadata),
                cache_control,
            )
        self.objects[dest_key] = copied

    async def delete(self, key: str) -> None:
        self.operations.append(("delete", key))
        self.objects.pop(key, None)

    async def list_page(
        self,
        prefix: str,
        continuation_token: Optional[str] = None,
        max_keys: int = 1000,
    ) -> ListPage:
        self.operations.append(("list", prefix))
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        if continuation_token:
            keys = [k for k in keys if k > continuation_token]

        limit = min(max_keys, self.max_page_size)
        page_keys = keys[:limit]
        truncated = len(keys) > limit
        return ListPage(
            objects=[
                ObjectSummary(key=k, size=len(self.objects[k].body), etag=self.objects[k].etag)
                for k in page_keys
            ],
            is_truncated=truncated,
            continuation_token=page_keys[-1] if truncated else None,
        )

    def _lookup(self, key: str) -> _Object:
        obj = self.objects.get(key)
        if obj is None:
            raise NotFoundError(f"No object at '{key}'", key=key)
        return obj


def _lower(metadata: dict[str, str]) -> dict[str, str]:
    return {k.lower(): v for k, v in metadata.items()}
