"""
Command-line interface for vocab-match word lists.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .db import DEFAULT_DB_PATH
from .exceptions import DataImportError, DuplicateIdentityError, MalformedEntryError
from .exporter import write_words_file
from .importer import load_words_file
from .models import ValidationResult, WordFilter, WordRecord
from .store import WordStore
from .validator import validate_entries

DEFAULT_WORDS_FILE = "words.json"


def main(argv: Optional[list] = None) -> int:
    """Main entry point for vocab-words CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="vocab-words",
        description="Generate and manage word lists for the vocabulary matching game",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s (vocab-match)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_DB_PATH,
        help=f"Database holding your words, edits and deletions (default: {DEFAULT_DB_PATH})",
    )
    parser.add_argument(
        "--words",
        type=Path,
        default=None,
        help=f"Base word list (default: {DEFAULT_WORDS_FILE} if it exists)",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # generate command
    generate_parser = subparsers.add_parser(
        "generate",
        help="Build a word list from CSV, JSON or YAML",
    )
    source = generate_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--csv", type=Path, help="CSV file: german,english[,german_example]")
    source.add_argument("--json", type=Path, help="JSON file (word list or vocabulary export)")
    source.add_argument("--yaml", type=Path, help="YAML file (same layouts as JSON)")
    generate_parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path(DEFAULT_WORDS_FILE),
        help=f"Output file path (default: {DEFAULT_WORDS_FILE})",
    )
    generate_parser.set_defaults(func=cmd_generate)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List words with their status",
    )
    list_parser.add_argument(
        "--filter",
        default=WordFilter.ALL.value,
        choices=[f.value for f in WordFilter] + ["repo"],
        help="Show only matching words (default: all)",
    )
    list_parser.add_argument(
        "--search",
        help="Show words whose German or English text contains this",
    )
    list_parser.set_defaults(func=cmd_list)

    # add command
    add_parser = subparsers.add_parser("add", help="Add a word")
    add_parser.add_argument("source_text", help="German text")
    add_parser.add_argument("target_text", help="English text")
    add_parser.add_argument("--example", help="Example sentence")
    add_parser.set_defaults(func=cmd_add)

    # edit command
    edit_parser = subparsers.add_parser("edit", help="Change a word")
    edit_parser.add_argument("original", help="German text the word was created with")
    edit_parser.add_argument("source_text", help="New German text")
    edit_parser.add_argument("target_text", help="New English text")
    edit_parser.add_argument("--example", help="New example sentence")
    edit_parser.set_defaults(func=cmd_edit)

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Hide a word (can be restored)")
    delete_parser.add_argument("source_text", help="Original German text")
    delete_parser.set_defaults(func=cmd_delete)

    # restore command
    restore_parser = subparsers.add_parser("restore", help="Bring back a deleted word")
    restore_parser.add_argument("source_text", help="Original German text")
    restore_parser.set_defaults(func=cmd_restore)

    # import command
    import_parser = subparsers.add_parser("import", help="Add new words from a file")
    import_parser.add_argument("file", type=Path, help="JSON, YAML or CSV word list")
    import_parser.set_defaults(func=cmd_import)

    # export command
    export_parser = subparsers.add_parser("export", help="Export the active word list")
    export_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write to this file instead of standard output",
    )
    export_parser.set_defaults(func=cmd_export)

    # history command
    history_parser = subparsers.add_parser("history", help="Show recent changes")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of changes to show (default: 20)",
    )
    history_parser.add_argument("--word", help="Only changes to this word")
    history_parser.set_defaults(func=cmd_history)

    return parser


def cmd_generate(args: argparse.Namespace) -> int:
    """Handle generate command."""
    if args.csv:
        path, fmt = args.csv, "csv"
    elif args.json:
        path, fmt = args.json, "json"
    else:
        path, fmt = args.yaml, "yaml"

    print(f"\nReading {fmt.upper()} file: {path}")
    try:
        parsed = load_words_file(path, fmt=fmt)
    except (DataImportError, FileNotFoundError) as e:
        print(f"\n  [ERROR] {e}")
        return 1

    print(f"  Found {len(parsed.entries)} word pairs")
    if parsed.malformed:
        print(f"  [WARN]  Skipped {parsed.malformed} record(s) missing german or english")

    findings = validate_entries(parsed.records)
    if findings:
        print("\nValidation warnings:")
        _print_validation_result(findings)

    if not parsed.entries:
        print("\n  [ERROR] No valid words found")
        return 1

    count = write_words_file(parsed.entries, args.output)
    print(f"\nGenerated {args.output} with {count} word pairs")
    return 0


def _open_store(args: argparse.Namespace) -> WordStore | None:
    store = WordStore(args.db)
    words = args.words
    if words is None and Path(DEFAULT_WORDS_FILE).exists():
        words = Path(DEFAULT_WORDS_FILE)
    if words is None:
        return store

    try:
        store.load_base_words(words)
    except (DataImportError, FileNotFoundError) as e:
        print(f"\n  [ERROR] Cannot load base words: {e}")
        store.close()
        return None
    return store


def _status(word: WordRecord) -> str:
    flags = [word.origin.value]
    if word.is_edited:
        flags.append("edited")
    if word.is_deleted:
        flags.append("deleted")
    return ",".join(flags)


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        words = store.filter_words(args.filter)
        if args.search:
            matches = store.search_words(args.search)
            words = [w for w in words if w in matches]

    if not words:
        print("No words found.")
        return 0

    print(f"\n{'German':<30} {'English':<30} {'Status'}")
    print("-" * 80)
    for word in words:
        print(f"{word.source_text:<30} {word.target_text:<30} {_status(word)}")
        if word.is_edited:
            print(f"{'':<4}was: {word.original_source_text} = {word.original_target_text}")
    print(f"\n{len(words)} word(s)")
    return 0


def _report_saved(saved: bool) -> None:
    if not saved:
        print("  [WARN]  Change applied but could not be saved")


def cmd_add(args: argparse.Namespace) -> int:
    """Handle add command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        try:
            saved = store.add_word(args.source_text, args.target_text, args.example)
        except (DuplicateIdentityError, MalformedEntryError) as e:
            print(f"\n  [ERROR] {e}")
            return 1
    print(f"Added {args.source_text!r} = {args.target_text!r}")
    _report_saved(saved)
    return 0


def cmd_edit(args: argparse.Namespace) -> int:
    """Handle edit command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        try:
            saved = store.edit_word(
                args.original, args.source_text, args.target_text, args.example,
            )
        except (DuplicateIdentityError, MalformedEntryError) as e:
            print(f"\n  [ERROR] {e}")
            return 1
    print(f"Updated {args.original!r}: {args.source_text!r} = {args.target_text!r}")
    _report_saved(saved)
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Handle delete command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        saved = store.delete_word(args.source_text)
    print(f"Deleted {args.source_text!r}")
    print(f"To restore: vocab-words restore {args.source_text!r}")
    _report_saved(saved)
    return 0


def cmd_restore(args: argparse.Namespace) -> int:
    """Handle restore command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        saved = store.restore_word(args.source_text)
    print(f"Restored {args.source_text!r}")
    _report_saved(saved)
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Handle import command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        try:
            result = store.import_file(args.file)
        except (DataImportError, FileNotFoundError) as e:
            print(f"\n  [ERROR] {e}")
            return 1

    print(f"\nImported {args.file}")
    print(f"  Added:   {result.added}")
    print(f"  Skipped: {result.skipped}")
    _report_saved(result.persisted)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Handle export command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        if args.output is None:
            print(store.export_active_words())
            return 0
        count = store.export_file(args.output)
    print(f"Exported {count} word(s) to {args.output}")
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    """Handle history command."""
    store = _open_store(args)
    if store is None:
        return 1
    with store:
        changes = store.get_history(source_text=args.word, limit=args.limit)

    if not changes:
        print("No changes recorded.")
        return 0

    print(f"\nRecent changes (showing {len(changes)}):\n")
    print(f"{'ID':<6} {'Operation':<10} {'Word':<30} {'Date'}")
    print("-" * 80)
    for change in changes:
        date = change.timestamp.split("T")[0] if change.timestamp else ""
        print(f"{change.id:<6} {change.operation:<10} {change.source_text:<30} {date}")
    return 0


def _print_validation_result(results: list[ValidationResult]) -> None:
    """Print validation errors and warnings."""
    for result in results:
        tag = "[ERROR]" if result.severity == "ERROR" else "[WARN] "
        print(f"  {tag} Record #{result.index + 1}: {result.message}")


if __name__ == "__main__":
    sys.exit(main())
