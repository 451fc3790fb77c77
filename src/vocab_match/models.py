"""Domain model dataclasses and enums for vocab-match."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Origin(str, Enum):
    """Collection a word record comes from."""

    BASE = "base"
    USER = "user"


class WordFilter(str, Enum):
    """Named predicates accepted by ``WordStore.filter_words``."""

    ALL = "all"
    BASE = "base"
    USER = "user"
    EDITED = "edited"
    DELETED = "deleted"
    ACTIVE = "active"


class Operation(str, Enum):
    """Mutation kinds recorded in the change history."""

    ADD = "ADD"
    EDIT = "EDIT"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    IMPORT = "IMPORT"


class Severity(str, Enum):
    """Severity levels for validation results."""

    ERROR = "ERROR"
    WARNING = "WARNING"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class WordEntry:
    """A vocabulary pair: source-language text and its translation."""

    source_text: str
    target_text: str
    example: str | None = None


@dataclass(frozen=True, slots=True)
class WordRecord:
    """A word annotated with where it came from and what the user changed."""

    original_source_text: str
    original_target_text: str
    source_text: str
    target_text: str
    origin: Origin
    is_edited: bool
    is_deleted: bool
    example: str | None = None

    @property
    def entry(self) -> WordEntry:
        return WordEntry(self.source_text, self.target_text, self.example)


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of a batch import."""

    added: int
    skipped: int
    persisted: bool = True

    @property
    def total(self) -> int:
        return self.added + self.skipped


@dataclass(slots=True)
class SaveStatus:
    """Outcome of a :meth:`WordStore.batch` block, filled in when it exits."""

    persisted: bool = True


@dataclass(slots=True)
class UserData:
    """Snapshot of everything the user changed on top of the base words."""

    user_words: list[WordEntry] = field(default_factory=list)
    edited_words: dict[str, WordEntry] = field(default_factory=dict)
    deleted_words: set[str] = field(default_factory=set)


@dataclass(frozen=True, slots=True)
class EditRecord:
    """A single change-history entry."""

    id: int
    operation: str
    source_text: str
    old_value: str | None
    new_value: str | None
    timestamp: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """A single validation finding (error or warning)."""

    rule_id: str
    severity: str
    index: int
    source_text: str | None
    message: str
