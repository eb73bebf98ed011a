"""
Unit tests for clinical_topics/preprocessing/cleaning.py

Tests stopword filtering, the word-level cleaner and lemmatizer adapters.
No real data dependencies - runs in <1 second.
"""

import pytest

from clinical_topics.exceptions import ConfigError
from clinical_topics.preprocessing.cleaning import (
    DictionaryLemmatizer,
    StopwordFilter,
    TextCleaner,
    identity_lemmatizer,
    load_stopwords,
    resolve_lemmatizer,
)
from clinical_topics.preprocessing.constants import CLINICAL_STOPWORDS


class TestStopwordFilter:
    """Tests for StopwordFilter."""

    def test_removes_stopwords_preserving_order(self, basic_stopwords: set):
        """Non-stopwords keep their relative order."""
        swf = StopwordFilter(basic_stopwords)
        assert swf.filter(["the", "knee", "was", "swollen"]) == ["knee", "swollen"]

    def test_filter_is_idempotent(self, basic_stopwords: set):
        """filter(filter(x)) == filter(x)."""
        swf = StopwordFilter(basic_stopwords)
        tokens = ["a", "patient", "with", "chest", "pain", "and", "the", "dyspnea"]
        once = swf.filter(tokens)
        assert swf.filter(once) == once

    def test_case_normalized(self):
        """Stopwords and tokens are compared lower-cased."""
        swf = StopwordFilter({"The", "PATIENT"})
        assert "the" in swf
        assert "Patient" in swf
        assert swf.filter(["The", "patient", "Knee"]) == ["Knee"]

    def test_empty_set_allowed(self):
        """An empty set disables filtering."""
        swf = StopwordFilter(set())
        assert len(swf) == 0
        assert swf.filter(["the", "knee"]) == ["the", "knee"]

    def test_none_rejected(self):
        """A missing stopword set is a configuration error."""
        with pytest.raises(ConfigError):
            StopwordFilter(None)

    def test_bare_string_rejected(self):
        """A single string is not iterated character by character."""
        with pytest.raises(ConfigError):
            StopwordFilter("the")


class TestTextCleaner:
    """Tests for TextCleaner."""

    @pytest.fixture
    def cleaner(self, basic_stopwords: set) -> TextCleaner:
        return TextCleaner(StopwordFilter(basic_stopwords))

    def test_clean_tokens(self, cleaner: TextCleaner, sample_transcription: str):
        """Stopwords, digits and punctuation removed."""
        tokens = cleaner.clean_tokens(sample_transcription)
        assert tokens[:4] == ["patient", "male", "chest", "pain"]
        assert "the" not in tokens
        assert all(token.isalpha() for token in tokens)

    def test_clean_text_single_spaced(self, cleaner: TextCleaner):
        """Cleaned string is single-space separated."""
        assert cleaner.clean_text("The   knee\n\nwas SWOLLEN.") == "knee swollen"

    def test_clean_empty(self, cleaner: TextCleaner):
        """Empty input gives empty output."""
        assert cleaner.clean_tokens("") == []
        assert cleaner.clean_text("") == ""


class TestLemmatizers:
    """Tests for lemmatizer adapters."""

    def test_identity(self):
        assert identity_lemmatizer("fractures") == "fractures"

    def test_dictionary_lemmatizer(self, simple_lemmatizer: DictionaryLemmatizer):
        """Known tokens mapped, unknown tokens pass through."""
        assert simple_lemmatizer("knees") == "knee"
        assert simple_lemmatizer("femur") == "femur"

    def test_resolve_accepts_callable(self):
        assert resolve_lemmatizer(str.lower) is str.lower

    def test_resolve_rejects_none(self):
        """A lemmatizer binding is required."""
        with pytest.raises(ConfigError):
            resolve_lemmatizer(None)

    def test_resolve_rejects_non_callable(self):
        """Mappings must be wrapped, not passed directly."""
        with pytest.raises(ConfigError, match="callable"):
            resolve_lemmatizer({"knees": "knee"})


class TestLoadStopwords:
    """Tests for load_stopwords()."""

    def test_clinical_and_custom_only(self):
        """Bundled clinical list plus custom words, lower-cased."""
        words = load_stopwords(custom_stopwords=["Tolerated", " Procedure "], include_nltk=False)
        assert set(CLINICAL_STOPWORDS) <= words
        assert "tolerated" in words
        assert "procedure" in words

    def test_custom_only(self):
        """Without bundled lists only the custom words remain."""
        words = load_stopwords(["Knee"], include_clinical=False, include_nltk=False)
        assert words == {"knee"}

    def test_nothing_requested(self):
        assert load_stopwords(include_clinical=False, include_nltk=False) == set()
