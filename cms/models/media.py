"""
Media models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class MediaFile:
    """An upload. path is folder + file name, e.g. "static/img/cat.png"."""

    path: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class MediaAsset:
    """A stored media object."""

    id: str                 # Unique, immutable once assigned
    path: str               # Folder + file name, without the media namespace
    name: str               # File name
    size: int               # Bytes
    url: str = ""           # Retrieval URL (signed or public)
