"""
Entry workflow states.

    NoDraft      nothing under the unpublished or published namespace
    Draft        an unpublished copy exists, tagged with a status
    Published    a published copy exists; a draft may also exist
"""

from dataclasses import dataclass
from typing import Optional, Union

from cms.models.workflow import WorkflowStatus


@dataclass(frozen=True)
class NoDraft:
    pass


@dataclass(frozen=True)
class Draft:
    status: WorkflowStatus


@dataclass(frozen=True)
class Published:
    draft_status: Optional[WorkflowStatus] = None

    @property
    def has_draft(self) -> bool:
        return self.draft_status is not None


EntryState = Union[NoDraft, Draft, Published]
