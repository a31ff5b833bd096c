"""
Headless CMS backend on an object store.

Entries, media and an editorial workflow (draft -> review -> published)
kept in a bucket through key-prefix conventions and string metadata.
"""

__version__ = "0.1.0"
