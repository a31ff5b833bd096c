"""
Workflow Engine: the editorial state machine.

Every transition is expressed as object store calls on the unpublished and
published keys of an entry. None of them is atomic across calls:

    set_status   copy-onto-self with replaced metadata (one call)
    publish      copy unpublished -> published, then delete unpublished

A failure between the publish copy and the delete leaves both copies in
place. That state is observable and is repaired by re-running publish or
by ReconciliationScan; it is never reported to callers as a rollback.
"""

import logging
from enum import Enum

from cms.errors.exceptions import (
    ConfigurationError, InvalidStatusError, NotFoundError,
)
from cms.interfaces.object_store import ObjectStore
from cms.models.config import BackendConfig
from cms.models.workflow import WorkflowMetadata, WorkflowStatus
from cms.storage import metadata as codec
from cms.storage.keyspace import KeyspaceMapper, Namespace
from cms.workflow.states import Draft, EntryState, NoDraft, Published

logger = logging.getLogger("cms.workflow")

# Attached on in-place status updates so caches don't serve the old metadata
STATUS_CACHE_CONTROL = "max-age=1"


class PublishOutcome(str, Enum):
    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already_published"


class WorkflowEngine:
    """Status transitions and publish/unpublish for entries."""

    def __init__(self, store: ObjectStore, keyspace: KeyspaceMapper, config: BackendConfig):
        self.store = store
        self.keyspace = keyspace
        self.use_workflow = config.use_workflow
        self.initial_status: WorkflowStatus = config.initial_status
        self.statuses: tuple = config.statuses

    # --- Status values ---

    def parse_status(self, value) -> WorkflowStatus:
        """Map a status string onto the configured set."""
        try:
            status = WorkflowStatus(value)
        except ValueError:
            status = None
        if status not in self.statuses:
            raise InvalidStatusError(
                f"Unknown workflow status '{value}'. "
                f"Configured: {[s.value for s in self.statuses]}"
            )
        return status

    # --- Keys ---

    def write_namespace(self) -> Namespace:
        """Entries are written as drafts in workflow mode, straight to published otherwise."""
        return Namespace.UNPUBLISHED if self.use_workflow else Namespace.PUBLISHED

    def unpublished_key(self, collection: str, slug: str) -> str:
        return self.keyspace.key_for(Namespace.UNPUBLISHED, collection, slug)

    def published_key(self, collection: str, slug: str) -> str:
        return self.keyspace.key_for(Namespace.PUBLISHED, collection, slug)

    # --- Create / update ---

    async def status_for_write(self, collection: str, slug: str, new_entry: bool) -> WorkflowStatus:
        """
        Status to stamp on a write.

        New entries get the initial status. Updates carry the stored status
        forward so a content edit never moves an entry back in the workflow.
        If the existing object can't be read, the write still goes ahead with
        the initial status.
        """
        if new_entry:
            return self.initial_status

        key = self.keyspace.key_for(self.write_namespace(), collection, slug)
        try:
            head = await self.store.head(key)
        except NotFoundError:
            logger.warning(
                f"[update:{key}] Existing object not found, "
                f"using initial status '{self.initial_status.value}'"
            )
            return self.initial_status

        raw_status = {k.lower(): v for k, v in head.metadata.items()}.get("status")
        if raw_status is None:
            logger.warning(
                f"[update:{key}] Existing object has no status, "
                f"using initial status '{self.initial_status.value}'"
            )
            return self.initial_status

        try:
            return self.parse_status(codec.decode_value(raw_status))
        except InvalidStatusError:
            logger.warning(
                f"[update:{key}] Stored status '{raw_status}' is no longer configured, "
                f"using initial status '{self.initial_status.value}'"
            )
            return self.initial_status

    # --- Transitions ---

    async def set_status(self, collection: str, slug: str, new_status) -> WorkflowMetadata:
        """
        Change a draft's status in place. Every other metadata value is
        carried over byte for byte.

        Raises:
            NotFoundError: No draft exists
            InvalidStatusError: new_status is not configured
        """
        self._require_workflow("set status")
        status = self.parse_status(new_status)
        key = self.unpublished_key(collection, slug)

        head = await self.store.head(key)
        current = codec.decode(head.metadata, codec.detect_scheme(head.metadata), key=key)

        raw = {k: v for k, v in head.metadata.items() if k.lower() != "status"}
        raw["status"] = codec.encode_value(status.value)
        await self.store.copy(
            key,
            key,
            metadata=raw,
            content_type=head.content_type,
            cache_control=STATUS_CACHE_CONTROL,
        )

        logger.info(f"[status:{key}] {current.status} -> {status.value}")
        return current.with_status(status.value)

    async def publish(self, collection: str, slug: str) -> PublishOutcome:
        """
        Copy the draft over the published key, then delete the draft.

        The draft is deleted only after the copy returned. Calling publish
        again after a completed publish is a no-op.

        Raises:
            NotFoundError: Neither a draft nor a published copy exists
        """
        self._require_workflow("publish")
        source = self.unpublished_key(collection, slug)
        dest = self.published_key(collection, slug)

        try:
            await self.store.copy(source, dest)
        except NotFoundError:
            if await self.exists_published(collection, slug):
                logger.info(f"[publish:{source}] No draft, already published")
                return PublishOutcome.ALREADY_PUBLISHED
            raise

        # A failure here leaves both copies; publish again to finish
        await self.store.delete(source)
        logger.info(f"[publish:{source}] -> {dest}")
        return PublishOutcome.PUBLISHED

    async def delete_draft(self, collection: str, slug: str) -> None:
        """Delete the unpublished copy. Deleting a missing draft succeeds."""
        self._require_workflow("delete draft")
        key = self.unpublished_key(collection, slug)
        try:
            await self.store.delete(key)
        except NotFoundError:
            logger.debug(f"[delete-draft:{key}] Already absent")
            return
        logger.info(f"[delete-draft:{key}] Deleted")

    # --- Probes ---

    async def exists_published(self, collection: str, slug: str) -> bool:
        """HEAD on the published key. Only not-found maps to False."""
        try:
            await self.store.head(self.published_key(collection, slug))
        except NotFoundError:
            return False
        return True

    async def draft_status(self, collection: str, slug: str):
        """Status of the draft, or None when there is no draft."""
        key = self.unpublished_key(collection, slug)
        try:
            head = await self.store.head(key)
        except NotFoundError:
            return None
        metadata = codec.decode(head.metadata, codec.detect_scheme(head.metadata), key=key)
        return self.parse_status(metadata.status)

    async def describe(self, collection: str, slug: str) -> EntryState:
        """Current workflow state of an entry, read live from the store."""
        draft_status = await self.draft_status(collection, slug)
        if await self.exists_published(collection, slug):
            return Published(draft_status=draft_status)
        if draft_status is not None:
            return Draft(status=draft_status)
        return NoDraft()

    def _require_workflow(self, operation: str) -> None:
        if not self.use_workflow:
            raise ConfigurationError(
                f"Cannot {operation}: the editorial workflow is disabled "
                f"(set publish_mode: editorial_workflow)"
            )


