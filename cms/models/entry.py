"""
Entry models.
"""

from dataclasses import dataclass
from typing import Optional

from cms.models.workflow import WorkflowMetadata

DEFAULT_ENTRY_CONTENT_TYPE = "text/plain; charset=utf-8"


@dataclass
class Entry:
    """A single content document identified by collection and slug."""

    collection: str
    slug: str
    path: str               # Relative to the collection prefix, e.g. "post1.md"
    raw: str                # The document body as text


@dataclass
class PersistOptions:
    """Options for writing an entry."""

    new_entry: bool = False
    commit_message: str = ""
    title: Optional[str] = None
    description: Optional[str] = None
    content_type: str = DEFAULT_ENTRY_CONTENT_TYPE


@dataclass
class UnpublishedEntry:
    """
    An entry's unpublished copy plus its workflow metadata.

    is_modification is True when a published copy exists at read time.
    """

    entry: Entry
    metadata: WorkflowMetadata
    is_modification: bool = False

    @property
    def status(self) -> str:
        return self.metadata.status
