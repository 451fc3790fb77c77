"""Change history recording and querying for vocab-match."""

from __future__ import annotations

import json
import sqlite3

from vocab_match.db import STORAGE_KEY
from vocab_match.exporter import entry_to_record
from vocab_match.models import EditRecord, WordEntry


def _encode(value: WordEntry | dict | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, WordEntry):
        value = entry_to_record(value)
    return json.dumps(value, ensure_ascii=False)


def record_change(
    conn: sqlite3.Connection,
    operation: str,
    source_text: str,
    old_value: WordEntry | dict | None = None,
    new_value: WordEntry | dict | None = None,
    *,
    storage_key: str = STORAGE_KEY,
) -> None:
    """Record one mutation in edit history."""
    conn.execute(
        "INSERT INTO edit_history "
        "(storage_key, operation, source_text, old_value, new_value) "
        "VALUES (?, ?, ?, ?, ?)",
        (storage_key, operation, source_text, _encode(old_value), _encode(new_value)),
    )


def query_history(
    conn: sqlite3.Connection,
    *,
    storage_key: str = STORAGE_KEY,
    source_text: str | None = None,
    since: str | None = None,
    operation: str | None = None,
    limit: int | None = None,
) -> list[EditRecord]:
    """Query edit history with optional filters, oldest first."""
    clauses: list[str] = ["storage_key = ?"]
    params: list[str | int] = [storage_key]

    if source_text is not None:
        clauses.append("source_text = ?")
        params.append(source_text)
    if since is not None:
        clauses.append("timestamp > ?")
        params.append(since)
    if operation is not None:
        clauses.append("operation = ?")
        params.append(operation)

    where = " AND ".join(clauses)
    if limit is None:
        sql = (
            f"SELECT * FROM edit_history WHERE {where} "
            "ORDER BY timestamp ASC, rowid ASC"
        )
    else:
        # newest `limit` rows, still returned oldest first
        sql = (
            f"SELECT * FROM (SELECT * FROM edit_history WHERE {where} "
            "ORDER BY timestamp DESC, rowid DESC LIMIT ?) "
            "ORDER BY timestamp ASC, rowid ASC"
        )
        params.append(limit)

    rows = conn.execute(sql, params).fetchall()
    return [
        EditRecord(
            id=row["rowid"],
            operation=row["operation"],
            source_text=row["source_text"],
            old_value=row["old_value"],
            new_value=row["new_value"],
            timestamp=row["timestamp"],
        )
        for row in rows
    ]
