"""
Workflow status and metadata models.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class WorkflowStatus(str, Enum):
    """Editorial status of an entry's unpublished copy."""

    DRAFT = "draft"
    REVIEW = "review"
    READY = "ready"


@dataclass(frozen=True)
class WorkflowMetadata:
    """
    String metadata stored alongside every entry object.

    Absent optional fields are None, never an empty-string placeholder.
    """

    status: str
    slug: Optional[str] = None
    collection: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    legacy_path: Optional[str] = None
    commit_message: Optional[str] = None

    def with_status(self, status: str) -> "WorkflowMetadata":
        return replace(self, status=status)
