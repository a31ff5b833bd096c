"""
Reconciliation scan.

Publish is copy-then-delete and nothing makes the pair atomic. After a
failure an entry can be left with both copies in place. This scan finds
those entries by re-reading the store:

    draft_only            normal draft, nothing published yet
    published_only        normal published entry
    modified              both exist and differ: a pending edit of a live entry
    interrupted_publish   both exist with identical body and metadata: the
                          publish copy landed but the draft delete did not
    missing               neither exists

repair=True finishes interrupted publishes by deleting the stale draft.
Running the scan again after a repair is safe.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from cms.errors.exceptions import InvalidIdentifierError, NotFoundError
from cms.interfaces.object_store import ObjectStore, StoredObject
from cms.models.config import BackendConfig
from cms.storage.keyspace import KeyspaceMapper, Namespace
from cms.storage.listing import drain_listing, gather_bounded

logger = logging.getLogger("cms.reconcile")


class EntryCondition(str, Enum):
    DRAFT_ONLY = "draft_only"
    PUBLISHED_ONLY = "published_only"
    MODIFIED = "modified"
    INTERRUPTED_PUBLISH = "interrupted_publish"
    MISSING = "missing"


@dataclass
class Finding:
    collection: str
    slug: str
    condition: EntryCondition


@dataclass
class ReconciliationReport:
    findings: list[Finding] = field(default_factory=list)
    repaired: list[Finding] = field(default_factory=list)
    unparseable_keys: list[str] = field(default_factory=list)

    def with_condition(self, condition: EntryCondition) -> list[Finding]:
        return [f for f in self.findings if f.condition == condition]

    def to_dict(self) -> dict:
        return {
            "scanned": len(self.findings),
            "interrupted_publish": len(self.with_condition(EntryCondition.INTERRUPTED_PUBLISH)),
            "modified": len(self.with_condition(EntryCondition.MODIFIED)),
            "repaired": len(self.repaired),
            "unparseable_keys": list(self.unparseable_keys),
        }


class ReconciliationScan:
    """Detects (and optionally repairs) entries left mid-publish."""

    def __init__(self, store: ObjectStore, keyspace: KeyspaceMapper, config: BackendConfig):
        self.store = store
        self.keyspace = keyspace
        self.config = config

    async def check(self, collection: str, slug: str) -> EntryCondition:
        """Classify a single entry from the live store state."""
        draft = await self._get_or_none(self.keyspace.key_for(Namespace.UNPUBLISHED, collection, slug))
        published = await self._get_or_none(self.keyspace.key_for(Namespace.PUBLISHED, collection, slug))

        if draft is None and published is None:
            return EntryCondition.MISSING
        if published is None:
            return EntryCondition.DRAFT_ONLY
        if draft is None:
            return EntryCondition.PUBLISHED_ONLY
        if draft.body == published.body and _same_metadata(draft, published):
            return EntryCondition.INTERRUPTED_PUBLISH
        return EntryCondition.MODIFIED

    async def scan(self, repair: bool = False) -> ReconciliationReport:
        """Check every draft in the unpublished namespace."""
        report = ReconciliationReport()
        objects = await drain_listing(
            self.store,
            self.keyspace.prefix_for(Namespace.UNPUBLISHED),
            page_size=self.config.page_size,
            max_keys=self.config.max_listing_keys,
        )

        identities = []
        for obj in objects:
            try:
                identities.append(self.keyspace.split_entry_key(Namespace.UNPUBLISHED, obj.key))
            except InvalidIdentifierError:
                report.unparseable_keys.append(obj.key)

        async def classify(identity: tuple[str, str]) -> Finding:
            collection, slug = identity
            return Finding(collection, slug, await self.check(collection, slug))

        report.findings = await gather_bounded(identities, classify, self.config.max_concurrency)

        for finding in report.with_condition(EntryCondition.INTERRUPTED_PUBLISH):
            logger.warning(f"[reconcile] Interrupted publish: {finding.collection}/{finding.slug}")
            if repair:
                await self.store.delete(
                    self.keyspace.key_for(Namespace.UNPUBLISHED, finding.collection, finding.slug)
                )
                report.repaired.append(finding)

        if report.unparseable_keys:
            logger.warning(
                f"[reconcile] {len(report.unparseable_keys)} unpublished key(s) "
                f"outside the collection/slug layout"
            )
        logger.info(f"[reconcile] {report.to_dict()}")
        return report

    async def _get_or_none(self, key: str) -> Optional[StoredObject]:
        try:
            return await self.store.get(key)
        except NotFoundError:
            return None


def _same_metadata(a: StoredObject, b: StoredObject) -> bool:
    return {k.lower(): v for k, v in a.metadata.items()} == {k.lower(): v for k, v in b.metadata.items()}
