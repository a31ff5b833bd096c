from cms.repository.entries import EntryRepository

__all__ = ["EntryRepository"]
