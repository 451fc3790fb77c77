"""Custom exception hierarchy for vocab-match."""


class VocabMatchError(Exception):
    """Base exception for all vocab-match errors."""


class DuplicateIdentityError(VocabMatchError):
    """A word with the same source text already exists."""

    def __init__(self, message: str, source_text: str | None = None) -> None:
        self.source_text = source_text
        super().__init__(message)


class MalformedEntryError(VocabMatchError):
    """Word record lacks a source or target text."""


class DataImportError(VocabMatchError):
    """Failed to parse a word-list document (bad JSON/YAML/CSV, unknown shape)."""


class PersistenceUnavailableError(VocabMatchError):
    """User data could not be loaded from or saved to storage."""


class DatabaseError(PersistenceUnavailableError):
    """Schema version mismatch, connection failure."""
