"""Export pipeline for vocab-match."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from vocab_match.models import WordEntry

logger = logging.getLogger(__name__)


def entry_to_record(entry: WordEntry) -> dict[str, Any]:
    """Build the interchange record for one word, keys in canonical order."""
    record: dict[str, Any] = {
        "source_text": entry.source_text,
        "target_text": entry.target_text,
    }
    if entry.example is not None:
        record["example"] = entry.example
    return record


def dump_words(entries: Iterable[WordEntry]) -> str:
    """Serialize words to the canonical interchange format.

    A JSON array of ``source_text``/``target_text``/``example`` records,
    indented by two spaces with non-ASCII characters kept as-is. This is the
    format accepted by the importer and by the base-word loader.
    """
    return json.dumps(
        [entry_to_record(e) for e in entries],
        ensure_ascii=False,
        indent=2,
    )


def write_words_file(entries: Iterable[WordEntry], destination: str | Path) -> int:
    """Write words to *destination* atomically; return the number written."""
    entries = list(entries)
    destination = Path(destination)
    text = dump_words(entries) + "\n"

    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent,
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_path, destination)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.info("Wrote %d word(s) to %s", len(entries), destination)
    return len(entries)
