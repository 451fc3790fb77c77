"""Shared test fixtures for vocab-match."""

import json

import pytest

from vocab_match import WordEntry, WordStore

BASE_WORDS = [
    WordEntry("der Hund", "the dog"),
    WordEntry("die Katze", "the cat", "Die Katze ist süß."),
    WordEntry("das Haus", "the house"),
]


@pytest.fixture
def store():
    """Create an in-memory store for testing."""
    with WordStore(":memory:") as s:
        yield s


@pytest.fixture
def store_with_words(store):
    """Store with three base words and one user word ('der Baum')."""
    store.set_base_words(BASE_WORDS)
    store.add_word("der Baum", "the tree")
    return store


@pytest.fixture
def words_file(tmp_path):
    """A base word list in the original game's words.json layout."""
    path = tmp_path / "words.json"
    path.write_text(json.dumps([
        {"german": "der Hund", "english": "the dog"},
        {"german": "die Katze", "english": "the cat",
         "german_example": "Die Katze ist süß."},
        {"german": "das Haus", "english": "the house"},
    ], ensure_ascii=False), encoding="utf-8")
    return path
