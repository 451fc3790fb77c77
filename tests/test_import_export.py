"""Tests for importing, exporting and loading word lists."""

import json

import pytest

from vocab_match import (
    DataImportError,
    DocumentShape,
    WordEntry,
    WordStore,
    load_words_file,
    parse_words,
)
from vocab_match.importer import coerce_entry, parse_csv, parse_json, parse_yaml
from vocab_match.exceptions import MalformedEntryError


# ---------------------------------------------------------------------------
# import_words
# ---------------------------------------------------------------------------
class TestImportWords:

    def test_adds_new_and_skips_existing(self, store_with_words):
        result = store_with_words.import_words([
            {"source_text": "der Vogel", "target_text": "the bird"},
            {"german": "der Hund", "english": "a dog"},
            {"german": "nur Deutsch"},
            ["die Maus", "the mouse"],
        ])
        assert (result.added, result.skipped) == (2, 2)
        assert result.total == 4
        assert result.persisted is True
        assert [w.source_text for w in store_with_words.user_words] == [
            "der Baum", "der Vogel", "die Maus",
        ]

    def test_never_overwrites(self, store_with_words):
        store_with_words.import_words([{"german": "der Baum", "english": "a bush"}])
        assert store_with_words.user_words[0] == WordEntry("der Baum", "the tree")

    def test_duplicates_within_batch(self, store):
        result = store.import_words([
            WordEntry("der Vogel", "the bird"),
            WordEntry("der Vogel", "a bird"),
        ])
        assert (result.added, result.skipped) == (1, 1)
        assert store.user_words == (WordEntry("der Vogel", "the bird"),)

    def test_edit_target_counts_as_existing(self, store_with_words):
        store_with_words.edit_word("die Katze", "die Mieze", "the kitty")
        result = store_with_words.import_words([
            WordEntry("die Mieze", "kitty"),
            WordEntry("die Katze", "the cat"),
        ])
        assert (result.added, result.skipped) == (0, 2)

    def test_deleted_word_is_not_reimported(self, store):
        store.set_base_words([WordEntry("Katze", "cat")])
        store.delete_word("Katze")
        result = store.import_words([{"german": "Katze", "english": "cat"}])
        assert (result.added, result.skipped) == (0, 1)
        assert store.merged_active_words() == []

    def test_keeps_example(self, store):
        store.import_words([
            {"german": "der Vogel", "english": "the bird",
             "german_example": "Der Vogel singt."},
        ])
        assert store.user_words[0].example == "Der Vogel singt."

    def test_empty_values_are_skipped(self, store):
        result = store.import_words([
            {"source_text": "", "target_text": "nothing"},
            {"source_text": "nichts", "target_text": None},
            "just a string",
            42,
        ])
        assert (result.added, result.skipped) == (0, 4)

    def test_empty_word_entry_is_skipped(self, store):
        result = store.import_words([
            WordEntry("", "the dog"),
            WordEntry("der Hund", ""),
            WordEntry("der Vogel", "the bird"),
        ])
        assert (result.added, result.skipped) == (1, 2)
        assert store.user_words == (WordEntry("der Vogel", "the bird"),)

    def test_empty_word_entry_is_not_saved(self, tmp_path):
        path = tmp_path / "words.db"
        with WordStore(path) as store:
            store.add_word("der Vogel", "the bird")
            store.delete_word("der Hund")
            store.import_words([WordEntry("", "the dog")])

        with WordStore(path) as store:
            assert store.user_words == (WordEntry("der Vogel", "the bird"),)
            assert store.user_data().deleted_words == {"der Hund"}

    def test_import_saves_once(self, store):
        store.import_words([WordEntry("a", "1"), WordEntry("b", "2")])
        history = store.get_history()
        assert [h.operation for h in history] == ["IMPORT", "IMPORT"]
        assert [h.source_text for h in history] == ["a", "b"]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------
class TestExport:

    def test_export_records(self, store_with_words):
        data = json.loads(store_with_words.export_active_words())
        assert data == [
            {"source_text": "der Hund", "target_text": "the dog"},
            {"source_text": "die Katze", "target_text": "the cat",
             "example": "Die Katze ist süß."},
            {"source_text": "das Haus", "target_text": "the house"},
            {"source_text": "der Baum", "target_text": "the tree"},
        ]

    def test_key_order_and_indent(self, store_with_words):
        text = store_with_words.export_active_words()
        assert text.startswith('[\n  {\n    "source_text": "der Hund",\n    "target_text"')
        assert list(json.loads(text)[1]) == ["source_text", "target_text", "example"]

    def test_non_ascii_written_literally(self, store):
        store.add_word("die Brücke", "the bridge")
        assert "die Brücke" in store.export_active_words()

    def test_export_reflects_edits_and_deletes(self, store_with_words):
        store_with_words.edit_word("der Hund", "der Rüde", "the male dog")
        store_with_words.delete_word("das Haus")
        sources = [r["source_text"] for r in json.loads(store_with_words.export_active_words())]
        assert sources == ["der Rüde", "die Katze", "der Baum"]

    def test_export_file(self, store_with_words, tmp_path):
        out = tmp_path / "export.json"
        assert store_with_words.export_file(out) == 4
        assert json.loads(out.read_text(encoding="utf-8"))[0]["source_text"] == "der Hund"
        assert [p.name for p in tmp_path.iterdir()] == ["export.json"]

    def test_round_trip_adds_nothing(self, store_with_words):
        store_with_words.edit_word("der Hund", "der Rüde", "the male dog")
        store_with_words.delete_word("das Haus")
        exported = json.loads(store_with_words.export_active_words())
        result = store_with_words.import_words(exported)
        assert result.added == 0
        assert result.skipped == len(store_with_words.merged_active_words())

    def test_export_can_be_loaded_as_base_words(self, store_with_words, tmp_path):
        out = tmp_path / "words.json"
        store_with_words.export_file(out)
        with WordStore.from_words_file(out) as fresh:
            assert fresh.merged_active_words() == store_with_words.merged_active_words()


# ---------------------------------------------------------------------------
# Document shapes
# ---------------------------------------------------------------------------
class TestParseWords:

    def test_canonical_records(self):
        parsed = parse_words([
            {"source_text": "der Hund", "target_text": "the dog", "example": "Wau."},
        ])
        assert parsed.shape is DocumentShape.RECORDS
        assert parsed.entries == (WordEntry("der Hund", "the dog", "Wau."),)

    def test_game_records(self):
        parsed = parse_words([
            {"german": "der Hund", "english": "the dog", "german_example": "Wau."},
            {"german": "die Katze"},
        ])
        assert parsed.shape is DocumentShape.GAME_RECORDS
        assert parsed.entries == (WordEntry("der Hund", "the dog", "Wau."),)
        assert parsed.malformed == 1

    def test_pairs(self):
        parsed = parse_words([["der Hund", "the dog"], ["die Katze", "the cat", "Miau."], ["allein"]])
        assert parsed.shape is DocumentShape.PAIRS
        assert parsed.entries == (
            WordEntry("der Hund", "the dog"),
            WordEntry("die Katze", "the cat", "Miau."),
        )
        assert parsed.malformed == 1

    def test_vocabulary_document(self):
        parsed = parse_words({"vocabulary": [
            {"word": "der Hund", "translation": "the dog"},
            {"target": "die Katze", "source": "the cat", "example": "Miau."},
            {"word": "ohne Übersetzung"},
        ]})
        assert parsed.shape is DocumentShape.VOCABULARY
        assert parsed.entries == (
            WordEntry("der Hund", "the dog"),
            WordEntry("die Katze", "the cat", "Miau."),
        )
        assert parsed.malformed == 1

    def test_words_key(self):
        parsed = parse_words({"words": [{"german": "der Hund", "english": "the dog"}]})
        assert parsed.entries == (WordEntry("der Hund", "the dog"),)

    def test_mixed_items_are_malformed(self):
        parsed = parse_words([{"german": "der Hund", "english": "the dog"}, "Katze", 3])
        assert len(parsed.entries) == 1
        assert parsed.malformed == 2

    def test_empty_list(self):
        parsed = parse_words([])
        assert parsed.entries == ()
        assert parsed.malformed == 0

    def test_unknown_object_rejected(self):
        with pytest.raises(DataImportError):
            parse_words({"lexicon": []})

    def test_scalar_root_rejected(self):
        with pytest.raises(DataImportError):
            parse_words("der Hund")


class TestCoerceEntry:

    def test_word_entry_passthrough(self):
        entry = WordEntry("a", "b")
        assert coerce_entry(entry) is entry

    def test_non_string_rejected(self):
        with pytest.raises(MalformedEntryError):
            coerce_entry({"source_text": 1, "target_text": "one"})

    def test_missing_field_rejected(self):
        with pytest.raises(MalformedEntryError):
            coerce_entry({"english": "the dog"})

    def test_empty_word_entry_rejected(self):
        with pytest.raises(MalformedEntryError):
            coerce_entry(WordEntry("", "the dog"))
        with pytest.raises(MalformedEntryError):
            coerce_entry(WordEntry("der Hund", ""))

    def test_base_words_reject_empty_word_entry(self, store):
        with pytest.raises(MalformedEntryError):
            store.set_base_words([WordEntry("der Hund", "the dog"), WordEntry("", "x")])
        assert store.base_words == ()


class TestTextFormats:

    def test_json(self):
        parsed = parse_json('[{"german": "der Hund", "english": "the dog"}]')
        assert parsed.entries == (WordEntry("der Hund", "the dog"),)

    def test_invalid_json(self):
        with pytest.raises(DataImportError, match="Invalid JSON"):
            parse_json("[{")

    def test_yaml(self):
        parsed = parse_yaml(
            "- german: der Hund\n"
            "  english: the dog\n"
            "- german: die Katze\n"
            "  english: the cat\n"
        )
        assert [e.source_text for e in parsed.entries] == ["der Hund", "die Katze"]

    def test_invalid_yaml(self):
        with pytest.raises(DataImportError, match="Invalid YAML"):
            parse_yaml("- german: [unclosed\n")

    def test_empty_yaml(self):
        with pytest.raises(DataImportError):
            parse_yaml("")

    def test_csv_with_header(self):
        parsed = parse_csv(
            "german,english,german_example\n"
            "der Hund,the dog,Ich habe einen Hund.\n"
            '"die Katze, klein",the kitten,\n'
            "\n"
            "allein\n"
        )
        assert parsed.shape is DocumentShape.CSV
        assert parsed.entries == (
            WordEntry("der Hund", "the dog", "Ich habe einen Hund."),
            WordEntry("die Katze, klein", "the kitten"),
        )
        assert parsed.malformed == 1

    def test_csv_without_header(self):
        parsed = parse_csv("der Hund, the dog\ndie Katze, the cat\n")
        assert parsed.entries == (
            WordEntry("der Hund", "the dog"),
            WordEntry("die Katze", "the cat"),
        )


class TestLoadWordsFile:

    def test_load_game_words_file(self, words_file):
        parsed = load_words_file(words_file)
        assert len(parsed.entries) == 3
        assert parsed.entries[1].example == "Die Katze ist süß."

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "words.yml"
        path.write_text("words:\n  - word: der Hund\n    translation: the dog\n", encoding="utf-8")
        assert load_words_file(path).entries == (WordEntry("der Hund", "the dog"),)

    def test_format_override(self, tmp_path):
        path = tmp_path / "words.txt"
        path.write_text("der Hund,the dog\n", encoding="utf-8")
        assert load_words_file(path, fmt="csv").entries == (WordEntry("der Hund", "the dog"),)

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "words.txt"
        path.write_text("der Hund,the dog\n", encoding="utf-8")
        with pytest.raises(DataImportError):
            load_words_file(path)

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_words_file(tmp_path / "missing.json")

    def test_store_load_base_words(self, store, words_file):
        assert store.load_base_words(words_file) == 3
        assert [w.source_text for w in store.merged_active_words()] == [
            "der Hund", "die Katze", "das Haus",
        ]

    def test_import_file_counts_malformed_as_skipped(self, store_with_words, tmp_path):
        path = tmp_path / "new.csv"
        path.write_text(
            "german,english\nder Vogel,the bird\nder Hund,the dog\nallein\n",
            encoding="utf-8",
        )
        result = store_with_words.import_file(path)
        assert (result.added, result.skipped) == (1, 2)

    def test_from_words_file_bad_document(self, tmp_path):
        path = tmp_path / "words.json"
        path.write_text('{"lexicon": []}', encoding="utf-8")
        with pytest.raises(DataImportError):
            WordStore.from_words_file(path)
