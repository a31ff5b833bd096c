"""
Entry Repository: entries and media on top of a bare object store.

Keys come from KeyspaceMapper, metadata from the metadata codec and
statuses from WorkflowEngine. This module owns the multi-key operations:
batch fetches, fully drained listings, media enumeration and legacy
key migration.

Missing-vs-error policy for every multi-key read: a key that vanished
(NotFoundError) is dropped from the result; any other failure aborts the
whole call and propagates unchanged. There are no partial results on real
errors.

Durability: the store keeps only the latest body per key. A commit message
is recorded in metadata for audit, but prior revisions are gone unless the
bucket has object versioning enabled.
"""

import logging
import mimetypes
import uuid
from collections import defaultdict
from typing import Optional, Sequence

from cms.errors.exceptions import InvalidIdentifierError, NotFoundError
from cms.interfaces.object_store import ObjectStore, ObjectSummary
from cms.interfaces.url_signer import UrlSigner
from cms.models.config import BackendConfig
from cms.models.entry import Entry, PersistOptions, UnpublishedEntry
from cms.models.media import MediaAsset, MediaFile
from cms.models.workflow import WorkflowMetadata
from cms.storage import metadata as codec
from cms.storage.keyspace import KeyspaceMapper, Namespace, SEPARATOR
from cms.storage.listing import drain_listing, gather_bounded
from cms.workflow.engine import WorkflowEngine

logger = logging.getLogger("cms.repository")


class EntryRepository:
    """Persistence for entries, drafts and media."""

    def __init__(
        self,
        store: ObjectStore,
        config: BackendConfig,
        url_signer: UrlSigner,
        keyspace: Optional[KeyspaceMapper] = None,
        workflow: Optional[WorkflowEngine] = None,
    ):
        self.store = store
        self.config = config
        self.url_signer = url_signer
        self.keyspace = keyspace or KeyspaceMapper.from_config(config)
        self.workflow = workflow or WorkflowEngine(store, self.keyspace, config)

    # --- Published entries ---

    async def list_by_explicit_files(self, collection: str, refs: Sequence[str]) -> list[Entry]:
        """
        Fetch published entries by file reference, in input order.
        References with no stored object are dropped.
        """
        targets = [(ref, self.keyspace.key_for(Namespace.PUBLISHED, collection, ref)) for ref in refs]

        async def fetch(target: tuple[str, str]) -> Optional[Entry]:
            ref, key = target
            return await self._fetch_entry_or_none(collection, ref, key)

        entries = await gather_bounded(targets, fetch, self.config.max_concurrency)
        found = [e for e in entries if e is not None]
        logger.debug(f"[files:{collection}] {len(found)}/{len(targets)} found")
        return found

    async def list_by_folder(self, collection: str, extension: str) -> list[Entry]:
        """
        Fetch every published entry of a collection whose key ends in extension.
        Each entry's path is relative to the collection prefix.
        """
        if not extension.startswith("."):
            extension = f".{extension}"

        prefix = self.keyspace.prefix_for(Namespace.PUBLISHED, collection)
        objects = await self._drain(prefix)

        paths = []
        for obj in objects:
            if not obj.key.endswith(extension):
                continue
            path = self.keyspace.strip_namespace(obj.key, prefix)
            if SEPARATOR in path:
                # Nested folders are not part of a folder collection
                logger.debug(f"[folder:{collection}] Skipping nested key {obj.key}")
                continue
            paths.append(path)

        async def fetch(path: str) -> Optional[Entry]:
            return await self._fetch_entry_or_none(collection, path, f"{prefix}{path}")

        entries = await gather_bounded(paths, fetch, self.config.max_concurrency)
        found = [e for e in entries if e is not None]
        logger.debug(f"[folder:{collection}] {len(found)} entries ({len(objects)} keys listed)")
        return found

    async def get_entry(self, collection: str, slug: str) -> Entry:
        """Fetch a published entry. Raises NotFoundError if absent."""
        key = self.keyspace.key_for(Namespace.PUBLISHED, collection, slug)
        obj = await self.store.get(key)
        return Entry(collection=collection, slug=slug, path=slug, raw=obj.text())

    async def persist_entry(self, entry: Entry, options: Optional[PersistOptions] = None) -> WorkflowMetadata:
        """
        Write an entry body with its workflow metadata.

        In workflow mode the write goes to the unpublished key; otherwise
        straight to the published key. Updates keep the stored status.
        """
        options = options or PersistOptions()
        status = await self.workflow.status_for_write(entry.collection, entry.slug, options.new_entry)

        metadata = WorkflowMetadata(
            status=status.value,
            slug=entry.slug,
            collection=entry.collection,
            title=options.title,
            description=options.description,
            commit_message=options.commit_message or None,
        )
        key = self.keyspace.key_for(self.workflow.write_namespace(), entry.collection, entry.slug)
        await self.store.put(
            key,
            entry.raw.encode("utf-8"),
            content_type=options.content_type,
            metadata=codec.encode(metadata),
        )

        action = "Created" if options.new_entry else "Updated"
        logger.info(f"[persist:{key}] {action} ({status.value}) {options.commit_message!r}")
        return metadata

    # --- Unpublished entries ---

    async def get_unpublished_entry(self, collection: str, slug: str) -> UnpublishedEntry:
        """Fetch a draft with its metadata. Raises NotFoundError if absent."""
        key = self.keyspace.key_for(Namespace.UNPUBLISHED, collection, slug)
        obj = await self.store.get(key)
        metadata = codec.decode(obj.metadata, key=key)
        return UnpublishedEntry(
            entry=Entry(collection=collection, slug=slug, path=slug, raw=obj.text()),
            metadata=metadata,
            is_modification=await self.workflow.exists_published(collection, slug),
        )

    async def list_unpublished_entries(self) -> list[UnpublishedEntry]:
        """
        Every draft in the unpublished namespace, across all collections.
        The listing is fully drained; is_modification is checked live per entry.

        Keys outside the {collection}/{slug} layout fail the whole call with
        MalformedKeyError, so legacy drafts are never hidden from editors.
        They are cleared with `cms-admin migrate-legacy`. ReconciliationScan
        reports the same keys as unparseable_keys without failing.
        """
        objects = await self._drain(self.keyspace.prefix_for(Namespace.UNPUBLISHED))
        identities = [self.keyspace.split_entry_key(Namespace.UNPUBLISHED, o.key) for o in objects]

        async def fetch(identity: tuple[str, str]) -> Optional[UnpublishedEntry]:
            collection, slug = identity
            try:
                return await self.get_unpublished_entry(collection, slug)
            except NotFoundError:
                # Published or deleted between listing and fetch
                return None

        entries = await gather_bounded(identities, fetch, self.config.max_concurrency)
        found = [e for e in entries if e is not None]
        logger.debug(f"[unpublished] {len(found)} drafts")
        return found

    # --- Media ---

    async def persist_media(self, media: MediaFile, commit_message: str = "") -> MediaAsset:
        """
        Store an upload under a freshly generated id.

        Every upload gets its own key, so concurrent uploads to the same
        path never overwrite each other.
        """
        asset_id = uuid.uuid4().hex
        key = self.keyspace.media_key(media.path, asset_id)
        parts = self.keyspace.parse_media_key(key)

        content_type = (
            media.content_type
            or mimetypes.guess_type(parts.name)[0]
            or "application/octet-stream"
        )
        metadata = {"commit-message": codec.encode_value(commit_message)} if commit_message else None
        await self.store.put(key, media.content, content_type=content_type, metadata=metadata)

        logger.info(f"[media:{parts.path}] Stored {media.size} bytes as {asset_id}")
        return MediaAsset(
            id=asset_id,
            path=parts.path,
            name=parts.name,
            size=media.size,
            url=self.url_signer.url_for(key),
        )

    async def list_media(self, folder: str = "") -> list[MediaAsset]:
        """
        Every media upload under a folder ('' for the whole library).

        Raises:
            MalformedKeyError: A key under the media namespace doesn't
                have at least namespace/name/id segments
        """
        objects = await self._drain(self.keyspace.media_folder_prefix(folder))
        assets = []
        for obj in objects:
            parts = self.keyspace.parse_media_key(obj.key)
            assets.append(MediaAsset(
                id=parts.asset_id,
                path=parts.path,
                name=parts.name,
                size=obj.size,
                url=self.url_signer.url_for(obj.key),
            ))
        return assets

    async def delete_media_path(self, path: str) -> int:
        """Delete every upload stored under a media path. Returns the count."""
        objects = await self._drain(self.keyspace.media_path_prefix(path))

        async def delete(obj: ObjectSummary) -> None:
            await self.store.delete(obj.key)

        await gather_bounded(objects, delete, self.config.max_concurrency)
        logger.info(f"[media:{path}] Deleted {len(objects)} object(s)")
        return len(objects)

    # --- Legacy layout ---

    async def migrate_legacy(self, namespace: Namespace, collection: str, folder: str) -> list[tuple[str, str]]:
        """
        Move objects from the path-keyed layout ({namespace}/{folder}/{file})
        to the canonical one ({namespace}/{collection}/{file}).

        Each object is copied with slug, collection and legacy-path stamped
        into its metadata, then the old key is deleted once the copy returned.
        Existing canonical objects are never overwritten.

        Targets are resolved before any copy starts. Legacy files that share a
        file name across subfolders would land on the same canonical key, so
        all of them are left in place with a warning.

        Returns:
            (old_key, new_key) for every migrated object
        """
        if namespace == Namespace.MEDIA:
            raise InvalidIdentifierError("Media keys have no legacy layout")

        namespace_prefix = self.keyspace.prefix_for(namespace)
        folder_prefix = f"{self.keyspace.legacy_key_for(namespace, folder)}{SEPARATOR}"
        objects = await self._drain(folder_prefix)

        claims: dict[str, list[str]] = defaultdict(list)
        for obj in objects:
            file_path = self.keyspace.strip_namespace(obj.key, namespace_prefix)
            slug = file_path.rsplit(SEPARATOR, 1)[-1]
            new_key = self.keyspace.key_for(namespace, collection, slug)
            if new_key != obj.key:
                claims[new_key].append(obj.key)

        moves = []
        for new_key, old_keys in claims.items():
            if len(old_keys) > 1:
                logger.warning(
                    f"[migrate:{new_key}] claimed by {', '.join(old_keys)}, leaving legacy copies"
                )
                continue
            moves.append((old_keys[0], new_key))

        async def migrate(move: tuple[str, str]) -> Optional[tuple[str, str]]:
            old_key, new_key = move
            try:
                await self.store.head(new_key)
                logger.warning(f"[migrate:{old_key}] {new_key} already exists, leaving legacy copy")
                return None
            except NotFoundError:
                pass

            file_path = self.keyspace.strip_namespace(old_key, namespace_prefix)
            slug = new_key.rsplit(SEPARATOR, 1)[-1]
            head = await self.store.head(old_key)
            raw = {k.lower(): v for k, v in head.metadata.items()}
            raw["slug"] = codec.encode_value(slug)
            raw["collection"] = codec.encode_value(collection)
            raw["legacy-path"] = codec.encode_value(file_path)
            if namespace == Namespace.UNPUBLISHED and "status" not in raw:
                raw["status"] = codec.encode_value(self.workflow.initial_status.value)

            await self.store.copy(old_key, new_key, metadata=raw, content_type=head.content_type)
            await self.store.delete(old_key)
            logger.info(f"[migrate] {old_key} -> {new_key}")
            return old_key, new_key

        results = await gather_bounded(moves, migrate, self.config.max_concurrency)
        return [r for r in results if r is not None]

    # --- Helpers ---

    async def _fetch_entry_or_none(self, collection: str, slug: str, key: str) -> Optional[Entry]:
        try:
            obj = await self.store.get(key)
        except NotFoundError:
            return None
        return Entry(collection=collection, slug=slug, path=slug, raw=obj.text())

    async def _drain(self, prefix: str) -> list[ObjectSummary]:
        return await drain_listing(
            self.store,
            prefix,
            page_size=self.config.page_size,
            max_keys=self.config.max_listing_keys,
        )
