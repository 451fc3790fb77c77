"""Word-list parsing for vocab-match.

A word-list document comes in one of a handful of shapes. Each shape is a
separate case below; the document is classified first and every record is then
checked against that shape's field names. Records that lack a field are counted
as malformed instead of failing the whole document, so imports can report them
as skipped.

Recognised shapes:

* ``records`` - ``[{"source_text": ..., "target_text": ..., "example": ...}]``
* ``game_records`` - ``[{"german": ..., "english": ..., "german_example": ...}]``
* ``pairs`` - ``[["der Hund", "the dog"], ...]`` with an optional example
* ``vocabulary`` - ``{"words" | "vocabulary": [{"word", "translation", ...}]}``
* ``csv`` - rows of source, target and optional example, header optional
"""

from __future__ import annotations

import csv
import io
import json
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from vocab_match.exceptions import DataImportError, MalformedEntryError
from vocab_match.models import WordEntry

logger = logging.getLogger(__name__)


class DocumentShape(str, Enum):
    """Layouts a word-list document may use."""

    RECORDS = "records"
    GAME_RECORDS = "game_records"
    PAIRS = "pairs"
    VOCABULARY = "vocabulary"
    CSV = "csv"


@dataclass(frozen=True, slots=True)
class _FieldNames:
    source: tuple[str, ...]
    target: tuple[str, ...]
    example: tuple[str, ...]


_RECORD_FIELDS = _FieldNames(("source_text",), ("target_text",), ("example",))
_GAME_FIELDS = _FieldNames(("german",), ("english",), ("german_example", "example"))
# Vocabulary exports name the learned word "target" and the known one "source"
_VOCABULARY_FIELDS = _FieldNames(
    ("word", "target", "german"),
    ("translation", "source", "english"),
    ("german_example", "example"),
)

_CSV_HEADER_NAMES = frozenset({"german", "english", "source_text", "target_text"})


@dataclass(frozen=True, slots=True)
class ParsedWords:
    """Result of parsing a word-list document."""

    shape: DocumentShape
    entries: tuple[WordEntry, ...]
    malformed: int = 0
    # every decoded item, before any was dropped
    records: tuple[Any, ...] = ()


# ---------------------------------------------------------------------------
# Single records
# ---------------------------------------------------------------------------

def _text(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def _first(record: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        if record.get(name):
            return record[name]
    return None


def _entry_from_mapping(record: Mapping[str, Any], names: _FieldNames) -> WordEntry:
    source = _text(_first(record, names.source))
    target = _text(_first(record, names.target))
    if source is None or target is None:
        raise MalformedEntryError(
            f"Record needs non-empty {names.source[0]!r} and "
            f"{names.target[0]!r} text fields: {dict(record)!r}"
        )
    return WordEntry(source, target, _text(_first(record, names.example)))


def _entry_from_pair(pair: Sequence[Any]) -> WordEntry:
    if len(pair) < 2:
        raise MalformedEntryError(f"Pair needs source and target: {list(pair)!r}")
    source, target = _text(pair[0]), _text(pair[1])
    if source is None or target is None:
        raise MalformedEntryError(f"Pair needs non-empty text: {list(pair)!r}")
    example = _text(pair[2]) if len(pair) > 2 else None
    return WordEntry(source, target, example)


def _is_pair(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _names_for(record: Mapping[str, Any]) -> _FieldNames:
    if "source_text" in record or "target_text" in record:
        return _RECORD_FIELDS
    if "german" in record or "english" in record:
        return _GAME_FIELDS
    return _VOCABULARY_FIELDS


def record_fields(data: Any) -> tuple[Any, Any, Any]:
    """Return the raw (source, target, example) values of one record.

    Raises:
        MalformedEntryError: If *data* is neither a mapping nor a sequence.
    """
    if isinstance(data, WordEntry):
        return data.source_text, data.target_text, data.example
    if isinstance(data, Mapping):
        names = _names_for(data)
        return (
            _first(data, names.source),
            _first(data, names.target),
            _first(data, names.example),
        )
    if _is_pair(data):
        padded = list(data[:3]) + [None] * (3 - min(len(data), 3))
        return padded[0], padded[1], padded[2]
    raise MalformedEntryError(f"Not a word record: {data!r}")


def coerce_entry(data: Any) -> WordEntry:
    """Turn one record in any recognised naming into a :class:`WordEntry`.

    Raises:
        MalformedEntryError: If the record lacks a source or target text.
    """
    if isinstance(data, WordEntry):
        if _text(data.source_text) is None or _text(data.target_text) is None:
            raise MalformedEntryError(f"Word needs non-empty text: {data!r}")
        return data
    if isinstance(data, Mapping):
        return _entry_from_mapping(data, _names_for(data))
    if _is_pair(data):
        return _entry_from_pair(data)
    raise MalformedEntryError(f"Not a word record: {data!r}")


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

def detect_shape(data: Any) -> DocumentShape:
    """Classify a decoded JSON/YAML document.

    Raises:
        DataImportError: If the document matches no known shape.
    """
    if isinstance(data, Mapping):
        if isinstance(data.get("words"), list) or isinstance(data.get("vocabulary"), list):
            return DocumentShape.VOCABULARY
        raise DataImportError(
            "Unsupported word-list format: expected a list or an object "
            "with a 'words' or 'vocabulary' list"
        )
    if not isinstance(data, list):
        raise DataImportError(
            f"Unsupported word-list format: root is {type(data).__name__}"
        )

    records = [item for item in data if isinstance(item, Mapping)]
    if any("source_text" in r or "target_text" in r for r in records):
        return DocumentShape.RECORDS
    if any("german" in r or "english" in r for r in records):
        return DocumentShape.GAME_RECORDS
    if data and not records and any(_is_pair(item) for item in data):
        return DocumentShape.PAIRS
    return DocumentShape.RECORDS


def _collect(
    shape: DocumentShape,
    items: list[Any],
    convert: Callable[[Any], WordEntry],
    accept: Callable[[Any], bool],
) -> ParsedWords:
    entries: list[WordEntry] = []
    malformed = 0
    for index, item in enumerate(items):
        if not accept(item):
            logger.debug("Skipping item #%d of %s document: %r", index + 1, shape.value, item)
            malformed += 1
            continue
        try:
            entries.append(convert(item))
        except MalformedEntryError as e:
            logger.debug("Skipping item #%d of %s document: %s", index + 1, shape.value, e)
            malformed += 1
    return ParsedWords(shape, tuple(entries), malformed, tuple(items))


def parse_words(data: Any) -> ParsedWords:
    """Parse a decoded JSON/YAML document into word entries.

    Raises:
        DataImportError: If the document matches no known shape.
    """
    shape = detect_shape(data)

    if shape is DocumentShape.VOCABULARY:
        items = data.get("words") or data.get("vocabulary") or []
        return _collect(
            shape, items,
            lambda r: _entry_from_mapping(r, _VOCABULARY_FIELDS),
            lambda r: isinstance(r, Mapping),
        )
    if shape is DocumentShape.PAIRS:
        return _collect(shape, data, _entry_from_pair, _is_pair)

    names = _GAME_FIELDS if shape is DocumentShape.GAME_RECORDS else _RECORD_FIELDS
    return _collect(
        shape, data,
        lambda r: _entry_from_mapping(r, names),
        lambda r: isinstance(r, Mapping),
    )


def parse_json(text: str) -> ParsedWords:
    """Parse a JSON word-list document."""
    try:
        data = json.loads(text)
    except ValueError as e:
        raise DataImportError(f"Invalid JSON: {e}") from e
    return parse_words(data)


def parse_yaml(text: str) -> ParsedWords:
    """Parse a YAML word-list document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f" (line {mark.line + 1})" if mark else ""
        raise DataImportError(f"Invalid YAML{where}: {e}") from e
    if data is None:
        raise DataImportError("Empty YAML content")
    return parse_words(data)


def parse_csv(text: str) -> ParsedWords:
    """Parse CSV rows of ``source, target[, example]``.

    The first row is treated as a header when it names one of the known
    columns (``german``, ``english``, ``source_text``, ``target_text``).
    """
    rows = [
        row for row in csv.reader(io.StringIO(text), skipinitialspace=True)
        if any(cell.strip() for cell in row)
    ]
    if rows and {cell.strip().lower() for cell in rows[0]} & _CSV_HEADER_NAMES:
        rows = rows[1:]

    return _collect(
        DocumentShape.CSV,
        [[cell.strip() for cell in row] for row in rows],
        _entry_from_pair,
        _is_pair,
    )


_PARSERS = {
    ".json": parse_json,
    ".yaml": parse_yaml,
    ".yml": parse_yaml,
    ".csv": parse_csv,
}


def load_words_file(source: str | Path, *, fmt: str | None = None) -> ParsedWords:
    """Read and parse a word-list file.

    Args:
        source: Path to a ``.json``, ``.yaml``/``.yml`` or ``.csv`` file.
        fmt: Overrides the format implied by the file suffix
            (``"json"``, ``"yaml"`` or ``"csv"``).

    Raises:
        FileNotFoundError: If the file does not exist.
        DataImportError: If the file cannot be decoded or parsed.
    """
    source = Path(source)
    if not source.exists():
        raise FileNotFoundError(f"File not found: {source}")

    suffix = f".{fmt.lower()}" if fmt else source.suffix.lower()
    parser = _PARSERS.get(suffix)
    if parser is None:
        raise DataImportError(f"Unsupported word-list file type: {suffix or source.name!r}")

    try:
        text = source.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise DataImportError(f"File is not UTF-8 text: {source}") from e

    parsed = parser(text)
    logger.info(
        "Parsed %d word(s) from %s (%s, %d malformed)",
        len(parsed.entries), source, parsed.shape.value, parsed.malformed,
    )
    return parsed
