"""Validation rules for word lists."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from vocab_match.exceptions import MalformedEntryError
from vocab_match.importer import record_fields
from vocab_match.models import Severity, ValidationResult


def validate_entries(items: Iterable[Any]) -> list[ValidationResult]:
    """Run all word-list rules over raw records or :class:`WordEntry` objects.

    Rules:
        VAL-WRD-001 (ERROR): source or target text missing.
        VAL-WRD-002 (ERROR): source or target is not a string.
        VAL-WRD-003 (WARNING): source text repeats an earlier record.
        VAL-WRD-004 (WARNING): text has leading or trailing whitespace.
    """
    results: list[ValidationResult] = []
    first_seen: dict[str, int] = {}

    for index, item in enumerate(items):
        try:
            source, target, _ = record_fields(item)
        except MalformedEntryError as e:
            results.append(_error("VAL-WRD-001", index, None, str(e)))
            continue

        label = source if isinstance(source, str) else None

        if not source or not target:
            results.append(_error(
                "VAL-WRD-001", index, label, "Missing source or target text",
            ))
            continue
        if not isinstance(source, str) or not isinstance(target, str):
            results.append(_error(
                "VAL-WRD-002", index, label, "Source and target must be strings",
            ))
            continue

        if source in first_seen:
            results.append(ValidationResult(
                rule_id="VAL-WRD-003",
                severity=Severity.WARNING.value,
                index=index,
                source_text=source,
                message=(
                    f"Duplicate source text {source!r} "
                    f"(first at record {first_seen[source] + 1})"
                ),
            ))
        else:
            first_seen[source] = index

        if source != source.strip() or target != target.strip():
            results.append(ValidationResult(
                rule_id="VAL-WRD-004",
                severity=Severity.WARNING.value,
                index=index,
                source_text=source,
                message="Text has leading or trailing whitespace",
            ))

    return results


def _error(
    rule_id: str, index: int, source_text: str | None, message: str
) -> ValidationResult:
    return ValidationResult(
        rule_id=rule_id,
        severity=Severity.ERROR.value,
        index=index,
        source_text=source_text,
        message=message,
    )

