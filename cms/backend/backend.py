"""
ObjectStoreBackend: the CMS backend contract on an object store.

    Authentication     authenticate / restore_user / logout / get_token
    Published entries  entries_by_files / entries_by_folder / get_entry / persist_entry
    Media library      persist_media / get_media / delete_media
    Editorial workflow unpublished_entries / unpublished_entry /
                       update_unpublished_entry_status /
                       publish_unpublished_entry / delete_unpublished_entry

Every store operation first makes sure the session is fresh, so expiring
credentials are swapped before the request instead of failing it.

Nothing here is transactional. Publishing is copy-then-delete; if it fails
halfway, call it again or run ReconciliationScan.
"""

import logging
from datetime import timedelta
from typing import Optional, Sequence

from cms.backend.session import DEFAULT_REFRESH_MARGIN, SessionManager
from cms.errors.exceptions import AuthError
from cms.interfaces.identity_provider import IdentityProvider
from cms.interfaces.object_store import ObjectStore
from cms.interfaces.url_signer import UrlSigner
from cms.models.config import BackendConfig
from cms.models.entry import Entry, PersistOptions, UnpublishedEntry
from cms.models.media import MediaAsset, MediaFile
from cms.models.session import Session, User
from cms.models.workflow import WorkflowMetadata
from cms.repository.entries import EntryRepository
from cms.workflow.engine import PublishOutcome
from cms.workflow.reconcile import ReconciliationScan

logger = logging.getLogger("cms.backend")


class ObjectStoreBackend:
    """CMS backend backed by an object store."""

    def __init__(
        self,
        config: BackendConfig,
        store: ObjectStore,
        url_signer: UrlSigner,
        identity: Optional[IdentityProvider] = None,
        refresh_margin: timedelta = DEFAULT_REFRESH_MARGIN,
    ):
        self.config = config
        self.store = store
        self.repository = EntryRepository(store, config, url_signer)
        self.workflow = self.repository.workflow
        self.reconciliation = ReconciliationScan(store, self.repository.keyspace, config)
        self.sessions: Optional[SessionManager] = None
        if identity is not None:
            self.sessions = SessionManager(
                identity,
                on_credentials=store.use_credentials,
                refresh_margin=refresh_margin,
            )

    # --- Authentication ---

    async def authenticate(self, email: str, password: str) -> User:
        session = await self._require_sessions().login(email, password)
        return session.user

    async def restore_user(self, session: Session) -> User:
        restored = await self._require_sessions().restore(session)
        return restored.user

    async def logout(self) -> None:
        if self.sessions is not None:
            await self.sessions.logout()

    async def get_token(self) -> str:
        """The current identity token, refreshed if needed. '' without an identity provider."""
        if self.sessions is None:
            return ""
        session = await self.sessions.ensure_fresh()
        return session.token

    # --- Published entries ---

    async def entries_by_files(self, collection: str, files: Sequence[str]) -> list[Entry]:
        await self._authorized()
        return await self.repository.list_by_explicit_files(collection, files)

    async def entries_by_folder(self, collection: str, extension: str) -> list[Entry]:
        await self._authorized()
        return await self.repository.list_by_folder(collection, extension)

    async def get_entry(self, collection: str, slug: str) -> Entry:
        await self._authorized()
        return await self.repository.get_entry(collection, slug)

    async def persist_entry(self, entry: Entry, options: Optional[PersistOptions] = None) -> WorkflowMetadata:
        await self._authorized()
        return await self.repository.persist_entry(entry, options)

    # --- Media library ---

    async def persist_media(self, media: MediaFile, commit_message: str = "") -> MediaAsset:
        await self._authorized()
        return await self.repository.persist_media(media, commit_message)

    async def get_media(self, folder: str = "") -> list[MediaAsset]:
        await self._authorized()
        return await self.repository.list_media(folder)

    async def delete_media(self, path: str) -> int:
        await self._authorized()
        return await self.repository.delete_media_path(path)

    # --- Editorial workflow ---

    async def unpublished_entries(self) -> list[UnpublishedEntry]:
        await self._authorized()
        return await self.repository.list_unpublished_entries()

    async def unpublished_entry(self, collection: str, slug: str) -> UnpublishedEntry:
        await self._authorized()
        return await self.repository.get_unpublished_entry(collection, slug)

    async def update_unpublished_entry_status(self, collection: str, slug: str, new_status: str) -> WorkflowMetadata:
        await self._authorized()
        return await self.workflow.set_status(collection, slug, new_status)

    async def publish_unpublished_entry(self, collection: str, slug: str) -> PublishOutcome:
        await self._authorized()
        return await self.workflow.publish(collection, slug)

    async def delete_unpublished_entry(self, collection: str, slug: str) -> None:
        await self._authorized()
        await self.workflow.delete_draft(collection, slug)

    # --- Helpers ---

    async def _authorized(self) -> None:
        if self.sessions is not None:
            await self.sessions.ensure_fresh()

    def _require_sessions(self) -> SessionManager:
        if self.sessions is None:
            raise AuthError("No identity provider configured for this backend")
        return self.sessions
