__version__ = "0.3.0"

from .store import WordStore as WordStore

from .models import (
    EditRecord as EditRecord,
    ImportResult as ImportResult,
    Operation as Operation,
    Origin as Origin,
    SaveStatus as SaveStatus,
    Severity as Severity,
    UserData as UserData,
    ValidationResult as ValidationResult,
    WordEntry as WordEntry,
    WordFilter as WordFilter,
    WordRecord as WordRecord,
)

from .exceptions import (
    DataImportError as DataImportError,
    DatabaseError as DatabaseError,
    DuplicateIdentityError as DuplicateIdentityError,
    MalformedEntryError as MalformedEntryError,
    PersistenceUnavailableError as PersistenceUnavailableError,
    VocabMatchError as VocabMatchError,
)

from .importer import (
    DocumentShape as DocumentShape,
    ParsedWords as ParsedWords,
    load_words_file as load_words_file,
    parse_words as parse_words,
)

from .exporter import (
    dump_words as dump_words,
    write_words_file as write_words_file,
)

from .validator import (
    validate_entries as validate_entries,
)

__all__ = [
    # Store
    "WordStore",
    # Models
    "EditRecord",
    "ImportResult",
    "Operation",
    "Origin",
    "SaveStatus",
    "Severity",
    "UserData",
    "ValidationResult",
    "WordEntry",
    "WordFilter",
    "WordRecord",
    # Exceptions
    "DataImportError",
    "DatabaseError",
    "DuplicateIdentityError",
    "MalformedEntryError",
    "PersistenceUnavailableError",
    "VocabMatchError",
    # Import/export
    "DocumentShape",
    "ParsedWords",
    "load_words_file",
    "parse_words",
    "dump_words",
    "write_words_file",
    # Validation
    "validate_entries",
]
