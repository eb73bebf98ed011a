"""
Unit tests for clinical_topics/preprocessing/pipeline.py

Tests record validation, per-document cleaning/lemmatization, n-gram
mode and deterministic ordering of the processed corpus.
No real data dependencies - runs in <1 second.
"""

from typing import Dict, List

import pytest
from pydantic import ValidationError

from clinical_topics.exceptions import ConfigError
from clinical_topics.preprocessing import (
    CorpusPipeline,
    Document,
    PipelineConfig,
    ProcessedCorpus,
    identity_lemmatizer,
    process_corpus,
)
from clinical_topics.preprocessing.constants import SegmentMode


@pytest.fixture
def word_config() -> PipelineConfig:
    return PipelineConfig(token_mode=SegmentMode.WORD, ngram_size=2, max_workers=1)


@pytest.fixture
def pipeline(basic_stopwords, simple_lemmatizer, word_config) -> CorpusPipeline:
    return CorpusPipeline(basic_stopwords, simple_lemmatizer, word_config)


class TestPipelineConfiguration:
    """Tests for eager configuration checks."""

    def test_sentence_mode_rejected(self, basic_stopwords):
        """Sentences are not a document-term unit."""
        config = PipelineConfig(token_mode="sentence", max_workers=1)
        with pytest.raises(ConfigError):
            CorpusPipeline(basic_stopwords, identity_lemmatizer, config)

    def test_missing_stopwords_rejected(self, word_config):
        with pytest.raises(ConfigError):
            CorpusPipeline(None, identity_lemmatizer, word_config)

    def test_missing_lemmatizer_rejected(self, basic_stopwords, word_config):
        with pytest.raises(ConfigError):
            CorpusPipeline(basic_stopwords, None, word_config)

    @pytest.mark.parametrize("field,value", [("ngram_size", 0), ("max_workers", 0)])
    def test_non_positive_sizes_rejected(self, basic_stopwords, field: str, value: int):
        config = PipelineConfig(token_mode="ngram", ngram_size=2, max_workers=1)
        setattr(config, field, value)
        with pytest.raises(ConfigError):
            CorpusPipeline(basic_stopwords, identity_lemmatizer, config)

    def test_unknown_config_field_rejected(self):
        """extra='forbid' catches typos."""
        with pytest.raises(ValidationError):
            PipelineConfig(token_mod="word")


class TestProcessCorpus:
    """Tests for CorpusPipeline.process_corpus()."""

    def test_documents_ordered_by_id(self, pipeline: CorpusPipeline, clinical_records: List[Dict]):
        """Output order is ascending id regardless of input order."""
        corpus = pipeline.process_corpus(clinical_records)
        assert corpus.document_ids == [1, 2, 3, 4]

    def test_tokens_cleaned_and_lemmatized(self, pipeline: CorpusPipeline, clinical_records: List[Dict]):
        """Stopwords removed, lemmas substituted, order preserved."""
        corpus = pipeline.process_corpus(clinical_records)
        by_id = {doc.id: doc for doc in corpus.documents}
        assert by_id[1].tokens == ("coronary", "artery", "show", "mild", "stenosis")
        assert by_id[3].tokens == ("both", "knee", "swollen", "fracture", "healed")

    def test_group_labels_carried(self, pipeline: CorpusPipeline, clinical_records: List[Dict]):
        corpus = pipeline.process_corpus(clinical_records)
        assert corpus.group_labels() == {
            1: "Cardiology", 2: "Surgery", 3: "Orthopedic", 4: "Cardiology",
        }

    def test_iter_pairs(self, pipeline: CorpusPipeline):
        """(document id, lemma) pairs in document then sequence order."""
        corpus = pipeline.process_corpus([
            {"id": 2, "text": "Swollen knees"},
            {"id": 1, "text": "Knee pain"},
        ])
        assert list(corpus.iter_pairs()) == [
            (1, "knee"), (1, "pain"), (2, "swollen"), (2, "knee"),
        ]

    def test_mixed_id_types_sorted(self, pipeline: CorpusPipeline):
        """Integer ids sort before string ids."""
        corpus = pipeline.process_corpus([
            {"id": "b", "text": "knee"},
            {"id": 2, "text": "knee"},
            {"id": "a", "text": "knee"},
            {"id": 1, "text": "knee"},
        ])
        assert corpus.document_ids == [1, 2, "a", "b"]

    def test_accepts_document_instances(self, pipeline: CorpusPipeline):
        corpus = pipeline.process_corpus([Document(id="x", text="Chest pain")])
        assert corpus.documents[0].tokens == ("chest", "pain")

    def test_parallel_matches_sequential(self, basic_stopwords, simple_lemmatizer, clinical_records):
        """Thread pool output is identical to the sequential run."""
        sequential = CorpusPipeline(
            basic_stopwords, simple_lemmatizer, PipelineConfig(token_mode="word", max_workers=1)
        ).process_corpus(clinical_records)
        parallel = CorpusPipeline(
            basic_stopwords, simple_lemmatizer, PipelineConfig(token_mode="word", max_workers=4)
        ).process_corpus(clinical_records)
        assert parallel == sequential


class TestMalformedRecords:
    """Tests for InputError handling (skip, never abort)."""

    def test_malformed_records_skipped(self, pipeline: CorpusPipeline):
        records = [
            {"id": 1, "text": "Knee pain."},
            {"id": 2},                             # missing text
            {"text": "no id here"},                # missing id
            "not a mapping",
            {"id": 1, "text": "duplicate id"},
            {"id": 3, "text": None},
            {"id": 4, "text": "knee", "group_label": ["unhashable"]},
        ]
        corpus = pipeline.process_corpus(records)
        assert corpus.document_ids == [1]
        assert len(corpus.skipped) == 6
        assert any("Duplicate document id" in message for message in corpus.skipped)

    def test_skipped_messages_in_warnings(self, pipeline: CorpusPipeline):
        corpus = pipeline.process_corpus([{"id": 1, "text": "knee"}, {"id": 2}])
        assert corpus.skipped[0] in corpus.warnings

    def test_empty_corpus(self, pipeline: CorpusPipeline):
        corpus = pipeline.process_corpus([])
        assert isinstance(corpus, ProcessedCorpus)
        assert len(corpus) == 0


class TestDocumentWarnings:
    """Tests for per-document, non-fatal warnings."""

    def test_all_stopwords_document_kept_empty(self, pipeline: CorpusPipeline):
        """A document with nothing retained is kept with a warning."""
        corpus = pipeline.process_corpus([{"id": 5, "text": "The was and."}])
        doc = corpus.documents[0]
        assert doc.tokens == ()
        assert len(doc) == 0
        assert any("no tokens retained" in w for w in doc.warnings)

    def test_failing_lemmatizer_drops_only_that_token(self, basic_stopwords, word_config):
        """A lemmatizer exception loses one token, not the document."""
        def flaky(token: str) -> str:
            if token == "mild":
                raise RuntimeError("lookup failed")
            return token

        pipeline = CorpusPipeline(basic_stopwords, flaky, word_config)
        corpus = pipeline.process_corpus([{"id": 1, "text": "Coronary arteries showed mild stenosis."}])
        doc = corpus.documents[0]
        assert doc.tokens == ("coronary", "arteries", "showed", "stenosis")
        assert any("mild" in w for w in doc.warnings)

    def test_empty_lemma_dropped(self, basic_stopwords, word_config):
        pipeline = CorpusPipeline(basic_stopwords, lambda token: "" if token == "pain" else token, word_config)
        corpus = pipeline.process_corpus([{"id": 1, "text": "knee pain"}])
        assert corpus.documents[0].tokens == ("knee",)

    def test_multi_word_lemma_dropped(self, basic_stopwords, word_config):
        """A lemma containing whitespace is dropped with a warning."""
        expand = {"mi": "myocardial infarction"}
        pipeline = CorpusPipeline(basic_stopwords, lambda token: expand.get(token, token), word_config)
        corpus = pipeline.process_corpus([{"id": 1, "text": "MI pain"}])
        doc = corpus.documents[0]
        assert doc.tokens == ("pain",)
        assert any("multi-word lemma" in w and "'mi'" in w for w in doc.warnings)

    def test_lemmas_not_refiltered(self, word_config):
        """A lemma that happens to be a stopword is kept."""
        pipeline = CorpusPipeline({"be"}, lambda token: "be" if token == "was" else token, word_config)
        corpus = pipeline.process_corpus([{"id": 1, "text": "knee was swollen"}])
        assert corpus.documents[0].tokens == ("knee", "be", "swollen")

    def test_iter_tokens_positions(self, pipeline: CorpusPipeline):
        corpus = pipeline.process_corpus([{"id": 9, "text": "chest pain"}])
        tokens = list(corpus.documents[0].iter_tokens())
        assert [(t.text, t.document_id, t.position) for t in tokens] == [
            ("chest", 9, 0), ("pain", 9, 1),
        ]


class TestNgramMode:
    """Tests for n-gram token mode."""

    def test_bigrams_built_from_cleaned_lemmas(self, basic_stopwords, simple_lemmatizer):
        corpus = process_corpus(
            [{"id": 1, "text": "Coronary arteries showed mild stenosis."}],
            stopwords=basic_stopwords,
            lemmatizer=simple_lemmatizer,
            token_mode="ngram",
            ngram_size=2,
        )
        assert corpus.documents[0].tokens == (
            "coronary artery", "artery show", "show mild", "mild stenosis",
        )

    def test_short_document_has_no_ngrams(self, basic_stopwords):
        corpus = process_corpus(
            [{"id": 1, "text": "The knee."}],
            stopwords=basic_stopwords,
            lemmatizer=identity_lemmatizer,
            token_mode="ngram",
            ngram_size=2,
        )
        assert corpus.documents[0].tokens == ()
