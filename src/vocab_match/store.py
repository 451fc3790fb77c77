"""WordStore: main entry point for the vocab-match library."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vocab_match import db as _db
from vocab_match import history as _hist
from vocab_match.exceptions import (
    DuplicateIdentityError,
    MalformedEntryError,
    PersistenceUnavailableError,
)
from vocab_match.exporter import dump_words, write_words_file
from vocab_match.importer import coerce_entry, load_words_file
from vocab_match.models import (
    EditRecord,
    ImportResult,
    Operation,
    Origin,
    SaveStatus,
    UserData,
    WordEntry,
    WordFilter,
    WordRecord,
)

logger = logging.getLogger(__name__)

# Filter names used by the game UI
_FILTER_ALIASES = {"repo": WordFilter.BASE.value}

_FILTERS = {
    WordFilter.ALL: lambda w: True,
    WordFilter.BASE: lambda w: w.origin is Origin.BASE,
    WordFilter.USER: lambda w: w.origin is Origin.USER,
    WordFilter.EDITED: lambda w: w.is_edited,
    WordFilter.DELETED: lambda w: w.is_deleted,
    WordFilter.ACTIVE: lambda w: not w.is_deleted,
}


@dataclass(frozen=True, slots=True)
class _Resolved:
    """One stored word with the user's overlay applied."""

    origin: Origin
    original: WordEntry
    current: WordEntry
    is_edited: bool
    is_deleted: bool


class WordStore:
    """Base word list plus the user's additions, edits and soft-deletions.

    Base words are read-only here: edits and deletions are overlays keyed by
    the word's *original* source text, so they survive a reload of the base
    list and a restore brings back exactly what was hidden. User data is
    loaded from ``db_path`` when the store is created and saved after every
    mutation. If the database cannot be used the store keeps working in
    memory and mutators return ``False``.
    """

    def __init__(
        self,
        db_path: str | Path = ":memory:",
        *,
        storage_key: str = _db.STORAGE_KEY,
        base_words: Iterable[Any] | None = None,
    ) -> None:
        self._db_path = str(db_path)
        self._storage_key = storage_key
        self._base: list[WordEntry] = []
        self._user: list[WordEntry] = []
        self._edited: dict[str, WordEntry] = {}
        self._deleted: set[str] = set()
        self._pending: list[
            tuple[Operation, str, WordEntry | None, WordEntry | None]
        ] = []
        self._batch_depth = 0
        self._batch_status: SaveStatus | None = None

        try:
            self._conn: sqlite3.Connection | None = _db.open_db(db_path)
        except PersistenceUnavailableError as e:
            logger.warning("Word changes will not be saved: %s", e)
            self._conn = None

        self._load()
        if base_words is not None:
            self.set_base_words(base_words)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> WordStore:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @property
    def persistence_available(self) -> bool:
        return self._conn is not None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self._conn is None:
            return
        try:
            data = _db.load_user_data(self._conn, self._storage_key)
        except PersistenceUnavailableError as e:
            logger.warning("Ignoring unreadable word data: %s", e)
            return
        if data is None:
            return
        self._user = list(data.user_words)
        self._edited = dict(data.edited_words)
        self._deleted = set(data.deleted_words)

    def _record(
        self,
        operation: Operation,
        source_text: str,
        old_value: WordEntry | None = None,
        new_value: WordEntry | None = None,
    ) -> None:
        self._pending.append((operation, source_text, old_value, new_value))

    def _save(self) -> bool:
        if self._batch_depth:
            return True
        return self._flush()

    def _flush(self) -> bool:
        changes, self._pending = self._pending, []
        if self._conn is None:
            logger.warning("Word data not saved: no database available")
            return False
        try:
            with self._conn:
                _db.save_user_data(self._conn, self.user_data(), self._storage_key)
                for operation, source_text, old_value, new_value in changes:
                    _hist.record_change(
                        self._conn, operation.value, source_text,
                        old_value, new_value, storage_key=self._storage_key,
                    )
        except (PersistenceUnavailableError, sqlite3.Error) as e:
            logger.warning("Word data not saved: %s", e)
            return False
        return True

    @contextmanager
    def batch(self) -> Generator[SaveStatus, None, None]:
        """Save once for all mutations inside the block.

        Mutators inside the block return ``True`` because their save is only
        queued. The yielded :class:`SaveStatus` says whether the save at the
        end of the outermost block succeeded; nested blocks share it.

        In-memory changes are kept even if the block raises, so the
        snapshot is written on every exit path.
        """
        if self._batch_status is None:
            self._batch_status = SaveStatus()
        status = self._batch_status
        self._batch_depth += 1
        try:
            yield status
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                if self._pending:
                    status.persisted = self._flush()
                self._batch_status = None

    def user_data(self) -> UserData:
        """Snapshot of the user's additions, edits and deletions."""
        return UserData(
            user_words=list(self._user),
            edited_words=dict(self._edited),
            deleted_words=set(self._deleted),
        )

    # ------------------------------------------------------------------
    # Base words
    # ------------------------------------------------------------------

    def set_base_words(self, entries: Iterable[Any]) -> None:
        """Replace the base word list; user data is left untouched."""
        self._base = [coerce_entry(e) for e in entries]

    def load_base_words(self, source: str | Path) -> int:
        """Replace the base word list with the words in a file."""
        parsed = load_words_file(source)
        if parsed.malformed:
            logger.warning(
                "Ignored %d malformed record(s) in %s", parsed.malformed, source
            )
        self.set_base_words(parsed.entries)
        return len(self._base)

    @classmethod
    def from_words_file(
        cls,
        source: str | Path,
        db_path: str | Path = ":memory:",
        *,
        storage_key: str = _db.STORAGE_KEY,
    ) -> WordStore:
        store = cls(db_path, storage_key=storage_key)
        try:
            store.load_base_words(source)
        except BaseException:
            store.close()
            raise
        return store

    @property
    def base_words(self) -> tuple[WordEntry, ...]:
        return tuple(self._base)

    @property
    def user_words(self) -> tuple[WordEntry, ...]:
        return tuple(self._user)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def _apply_edit(self, original: WordEntry) -> WordEntry:
        edit = self._edited.get(original.source_text)
        if edit is None:
            return original
        example = edit.example if edit.example is not None else original.example
        return WordEntry(edit.source_text, edit.target_text, example)

    def _resolve(self) -> Iterator[_Resolved]:
        for origin, words in ((Origin.BASE, self._base), (Origin.USER, self._user)):
            for original in words:
                yield _Resolved(
                    origin=origin,
                    original=original,
                    current=self._apply_edit(original),
                    is_edited=original.source_text in self._edited,
                    is_deleted=original.source_text in self._deleted,
                )

    def _current(self, original_source_text: str) -> WordEntry | None:
        for rec in self._resolve():
            if rec.original.source_text == original_source_text:
                return rec.current
        return None

    def merged_active_words(self) -> list[WordEntry]:
        """Words to play with: base then user order, edits applied.

        Deleted words are left out, and a word whose source text was
        already taken by an earlier one (base words come first) is
        dropped.
        """
        merged: list[WordEntry] = []
        seen: set[str] = set()
        for rec in self._resolve():
            if rec.is_deleted or rec.current.source_text in seen:
                continue
            merged.append(rec.current)
            seen.add(rec.current.source_text)
        return merged

    def all_words_with_metadata(self) -> list[WordRecord]:
        """Every base and user word, deleted ones included, for management views.

        A user word whose original source text matches a base word is left
        out, since the base word shadows it.
        """
        base_keys = {w.source_text for w in self._base}
        words: list[WordRecord] = []
        for rec in self._resolve():
            if rec.origin is Origin.USER and rec.original.source_text in base_keys:
                continue
            words.append(WordRecord(
                original_source_text=rec.original.source_text,
                original_target_text=rec.original.target_text,
                source_text=rec.current.source_text,
                target_text=rec.current.target_text,
                origin=rec.origin,
                is_edited=rec.is_edited,
                is_deleted=rec.is_deleted,
                example=rec.current.example,
            ))
        return words

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @staticmethod
    def _checked_entry(
        source_text: str, target_text: str, example: str | None
    ) -> WordEntry:
        if not source_text or not target_text:
            raise MalformedEntryError("Source and target text are required")
        return WordEntry(source_text, target_text, example or None)

    def add_word(
        self,
        source_text: str,
        target_text: str,
        example: str | None = None,
    ) -> bool:
        """Add a user word.

        Returns:
            Whether the change was saved (queued, inside :meth:`batch`).

        Raises:
            DuplicateIdentityError: If a base or user word already has this
                source text, deleted or not.
            MalformedEntryError: If either text is empty.
        """
        entry = self._checked_entry(source_text, target_text, example)
        if any(w.source_text == source_text for w in self._base) or any(
            w.source_text == source_text for w in self._user
        ):
            raise DuplicateIdentityError(
                f"Word already exists: {source_text!r}", source_text=source_text
            )

        self._user.append(entry)
        self._record(Operation.ADD, source_text, new_value=entry)
        return self._save()

    def edit_word(
        self,
        original_source_text: str,
        new_source_text: str,
        new_target_text: str,
        example: str | None = None,
    ) -> bool:
        """Override a word's texts, keyed by its original source text.

        Editing the same word again replaces the earlier override. Deleted
        words can be edited; the edit shows once the word is restored.

        Raises:
            DuplicateIdentityError: If another word currently resolves to
                *new_source_text*.
            MalformedEntryError: If either new text is empty.
        """
        entry = self._checked_entry(new_source_text, new_target_text, example)

        taken = any(
            rec.current.source_text == new_source_text
            for rec in self._resolve()
            if rec.original.source_text != original_source_text
        ) or any(
            edit.source_text == new_source_text
            for orig, edit in self._edited.items()
            if orig != original_source_text
        )
        if taken:
            raise DuplicateIdentityError(
                f"Source text already in use: {new_source_text!r}",
                source_text=new_source_text,
            )

        old = self._current(original_source_text)
        self._edited[original_source_text] = entry
        self._record(
            Operation.EDIT, original_source_text, old_value=old, new_value=entry
        )
        return self._save()

    def delete_word(self, source_text: str) -> bool:
        """Soft-delete a word by its original source text. Idempotent."""
        if source_text not in self._deleted:
            self._deleted.add(source_text)
            self._record(
                Operation.DELETE, source_text, old_value=self._current(source_text)
            )
        return self._save()

    def restore_word(self, source_text: str) -> bool:
        """Undo a soft-delete. Idempotent."""
        if source_text in self._deleted:
            self._deleted.discard(source_text)
            self._record(
                Operation.RESTORE, source_text, new_value=self._current(source_text)
            )
        return self._save()

    def import_words(self, entries: Iterable[Any]) -> ImportResult:
        """Add words that don't exist yet; count everything else as skipped.

        A word exists when a base word, a user word or an edit already uses
        its source text. Records without both texts are skipped too. The
        whole batch is saved once.
        """
        existing = {w.source_text for w in self._base}
        existing.update(w.source_text for w in self._user)
        existing.update(e.source_text for e in self._edited.values())

        added = skipped = 0
        for item in entries:
            try:
                entry = coerce_entry(item)
            except MalformedEntryError as e:
                logger.debug("Skipping import record: %s", e)
                skipped += 1
                continue
            if entry.source_text in existing:
                logger.debug("Skipping existing word %r", entry.source_text)
                skipped += 1
                continue
            self._user.append(entry)
            existing.add(entry.source_text)
            self._record(Operation.IMPORT, entry.source_text, new_value=entry)
            added += 1

        persisted = self._save()
        logger.info("Imported %d word(s), skipped %d", added, skipped)
        return ImportResult(added=added, skipped=skipped, persisted=persisted)

    def import_file(self, source: str | Path) -> ImportResult:
        """Parse a word-list file and import its words."""
        parsed = load_words_file(source)
        result = self.import_words(parsed.entries)
        return ImportResult(
            added=result.added,
            skipped=result.skipped + parsed.malformed,
            persisted=result.persisted,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_active_words(self) -> str:
        """Serialize :meth:`merged_active_words` to the interchange format."""
        return dump_words(self.merged_active_words())

    def export_file(self, destination: str | Path) -> int:
        """Write :meth:`merged_active_words` to a file."""
        return write_words_file(self.merged_active_words(), destination)

    # ------------------------------------------------------------------
    # Search & filter
    # ------------------------------------------------------------------

    def search_words(self, query: str) -> list[WordRecord]:
        """Words whose source or target text contains *query*, ignoring case."""
        needle = query.casefold()
        return [
            w for w in self.all_words_with_metadata()
            if needle in w.source_text.casefold() or needle in w.target_text.casefold()
        ]

    def filter_words(self, name: str | WordFilter) -> list[WordRecord]:
        """Words matching a named filter; unknown names return everything."""
        try:
            word_filter = WordFilter(_FILTER_ALIASES.get(name, name))
        except ValueError:
            logger.debug("Unknown word filter %r, returning all words", name)
            word_filter = WordFilter.ALL
        predicate = _FILTERS[word_filter]
        return [w for w in self.all_words_with_metadata() if predicate(w)]

    # ------------------------------------------------------------------
    # Change history
    # ------------------------------------------------------------------

    def get_history(
        self,
        *,
        source_text: str | None = None,
        since: str | None = None,
        operation: str | None = None,
        limit: int | None = None,
    ) -> list[EditRecord]:
        if self._conn is None:
            return []
        return _hist.query_history(
            self._conn,
            storage_key=self._storage_key,
            source_text=source_text,
            since=since,
            operation=operation,
            limit=limit,
        )

    def get_changes_since(self, timestamp: str) -> list[EditRecord]:
        return self.get_history(since=timestamp)
