from cms.models.workflow import WorkflowStatus, WorkflowMetadata
from cms.models.entry import Entry, PersistOptions, UnpublishedEntry
from cms.models.media import MediaFile, MediaAsset
from cms.models.session import StorageCredentials, User, Session
from cms.models.config import BackendConfig

__all__ = [
    "WorkflowStatus", "WorkflowMetadata",
    "Entry", "PersistOptions", "UnpublishedEntry",
    "MediaFile", "MediaAsset",
    "StorageCredentials", "User", "Session",
    "BackendConfig",
]
