"""Database connection, DDL, and user-data persistence for vocab-match."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

from vocab_match.exceptions import (
    DatabaseError,
    MalformedEntryError,
    PersistenceUnavailableError,
)
from vocab_match.exporter import entry_to_record
from vocab_match.importer import coerce_entry
from vocab_match.models import UserData

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0"

# Default on-disk location of the user's word data
DEFAULT_DB_PATH = Path.home() / ".vocab_match.db"

# Key under which the user-data snapshot is stored
STORAGE_KEY = "matchingGameUserData"

# ---------------------------------------------------------------------------
# DDL statements
# ---------------------------------------------------------------------------

_DDL = """
-- Meta table
CREATE TABLE IF NOT EXISTS meta (
    key TEXT NOT NULL,
    value TEXT,
    UNIQUE (key)
);

-- User data snapshots (one JSON document per storage key)
CREATE TABLE IF NOT EXISTS user_data (
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    UNIQUE (key)
);

-- Change history
CREATE TABLE IF NOT EXISTS edit_history (
    rowid INTEGER PRIMARY KEY,
    storage_key TEXT NOT NULL,
    operation TEXT NOT NULL CHECK( operation IN ('ADD', 'EDIT', 'DELETE', 'RESTORE', 'IMPORT') ),
    source_text TEXT NOT NULL,
    old_value TEXT,
    new_value TEXT,
    timestamp TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);
CREATE INDEX IF NOT EXISTS edit_history_source_index ON edit_history (storage_key, source_text);
CREATE INDEX IF NOT EXISTS edit_history_timestamp_index ON edit_history (timestamp);
"""


def connect(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Open a database connection with store PRAGMA settings."""
    db_path_str = str(db_path)
    try:
        conn = sqlite3.connect(db_path_str)
        if db_path_str != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL")
    except sqlite3.Error as e:
        raise DatabaseError(f"Cannot open database {db_path_str!r}: {e}") from e
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Initialize all tables if they don't exist. Set schema version."""
    conn.executescript(_DDL)
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.execute(
        "INSERT OR IGNORE INTO meta (key, value) "
        "VALUES ('created_at', strftime('%Y-%m-%dT%H:%M:%f', 'now'))",
    )
    conn.commit()


def check_schema_version(conn: sqlite3.Connection) -> None:
    """Verify the database schema version is compatible."""
    try:
        row = conn.execute(
            "SELECT value FROM meta WHERE key = 'schema_version'"
        ).fetchone()
    except sqlite3.OperationalError:
        # meta table doesn't exist - uninitialized DB
        return
    if row is None:
        return
    version = row[0]
    if version != SCHEMA_VERSION:
        raise DatabaseError(
            f"Incompatible schema version: {version} "
            f"(expected {SCHEMA_VERSION})"
        )


def open_db(db_path: str | Path = ":memory:") -> sqlite3.Connection:
    """Connect, check the schema version, and create missing tables."""
    conn = connect(db_path)
    try:
        check_schema_version(conn)
        init_db(conn)
    except sqlite3.Error as e:
        conn.close()
        raise DatabaseError(f"Cannot initialize database {str(db_path)!r}: {e}") from e
    except DatabaseError:
        conn.close()
        raise
    return conn


# ---------------------------------------------------------------------------
# User-data snapshot (de)serialization
# ---------------------------------------------------------------------------

def dump_user_data(data: UserData) -> str:
    """Serialize a snapshot: words as records, edits as a mapping, deletions as a list."""
    return json.dumps(
        {
            "userWords": [entry_to_record(w) for w in data.user_words],
            "editedWords": {
                orig: entry_to_record(w) for orig, w in data.edited_words.items()
            },
            "deletedWords": sorted(data.deleted_words),
        },
        ensure_ascii=False,
    )


def parse_user_data(text: str) -> UserData:
    """Parse a snapshot produced by :func:`dump_user_data`.

    Stored words and edits that are not valid records are dropped with a
    warning; the rest of the snapshot is kept.

    Raises:
        PersistenceUnavailableError: If the document is not a JSON object
            with list/object/list values.
    """
    try:
        raw = json.loads(text)
    except (TypeError, ValueError) as e:
        raise PersistenceUnavailableError(f"Corrupt user data: {e}") from e
    if not isinstance(raw, dict):
        raise PersistenceUnavailableError("Corrupt user data: root must be an object")

    user_words = raw.get("userWords") or []
    edited_words = raw.get("editedWords") or {}
    deleted_words = raw.get("deletedWords") or []
    if not isinstance(user_words, list):
        raise PersistenceUnavailableError("Corrupt user data: 'userWords' must be a list")
    if not isinstance(edited_words, dict):
        raise PersistenceUnavailableError("Corrupt user data: 'editedWords' must be an object")
    if not isinstance(deleted_words, list):
        raise PersistenceUnavailableError("Corrupt user data: 'deletedWords' must be a list")

    data = UserData(deleted_words={s for s in deleted_words if isinstance(s, str)})
    for index, raw_word in enumerate(user_words):
        try:
            data.user_words.append(coerce_entry(raw_word))
        except MalformedEntryError as e:
            logger.warning("Dropping stored user word #%d: %s", index + 1, e)
    for orig, raw_edit in edited_words.items():
        try:
            data.edited_words[str(orig)] = coerce_entry(raw_edit)
        except MalformedEntryError as e:
            logger.warning("Dropping stored edit of %r: %s", orig, e)
    return data


# ---------------------------------------------------------------------------
# User-data load/save
# ---------------------------------------------------------------------------

def load_user_data(conn: sqlite3.Connection, key: str = STORAGE_KEY) -> UserData | None:
    """Load the snapshot stored under *key*, or None if nothing was saved yet."""
    try:
        row = conn.execute(
            "SELECT value FROM user_data WHERE key = ?",
            (key,),
        ).fetchone()
    except sqlite3.Error as e:
        raise PersistenceUnavailableError(f"Cannot load user data: {e}") from e
    if row is None:
        return None
    return parse_user_data(row["value"])


def save_user_data(
    conn: sqlite3.Connection,
    data: UserData,
    key: str = STORAGE_KEY,
) -> None:
    """Store the snapshot under *key*, replacing any previous one."""
    try:
        conn.execute(
            "INSERT INTO user_data (key, value) VALUES (?, ?) "
            "ON CONFLICT (key) DO UPDATE SET value = excluded.value, "
            "updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now')",
            (key, dump_user_data(data)),
        )
    except sqlite3.Error as e:
        raise PersistenceUnavailableError(f"Cannot save user data: {e}") from e
