"""
Unit tests for clinical_topics/features/topic_modeling/gibbs.py

Tests count bookkeeping, seeded determinism and numeric failure handling
of the collapsed Gibbs samplers.
No real data dependencies - runs in a few seconds.
"""

import numpy as np
import pytest

from clinical_topics.exceptions import NumericError
from clinical_topics.features.document_term import DocumentTermMatrix
from clinical_topics.features.topic_modeling.gibbs import (
    ApproximateParallelSampler,
    CollapsedGibbsSampler,
    SamplerCheckpoint,
)


def _assert_counts_consistent(sampler: CollapsedGibbsSampler) -> None:
    """Count tables agree with the topic assignments."""
    n_doc_topic = np.zeros_like(sampler.n_doc_topic)
    n_term_topic = np.zeros_like(sampler.n_term_topic)
    np.add.at(n_doc_topic, (sampler.docs, sampler.z), 1)
    np.add.at(n_term_topic, (sampler.terms, sampler.z), 1)
    assert np.array_equal(n_doc_topic, sampler.n_doc_topic)
    assert np.array_equal(n_term_topic, sampler.n_term_topic)
    assert np.array_equal(np.bincount(sampler.z, minlength=sampler.num_topics), sampler.n_topic)


class TestCollapsedGibbsSampler:
    """Tests for the sequential sampler."""

    @pytest.fixture
    def sampler(self, separation_dtm: DocumentTermMatrix) -> CollapsedGibbsSampler:
        return CollapsedGibbsSampler(separation_dtm, num_topics=2, alpha=0.1, eta=0.1, random_state=42)

    def test_token_layout(self, sampler: CollapsedGibbsSampler):
        """One entry per token occurrence, grouped by document row."""
        assert sampler.num_tokens == 80
        assert sampler.doc_lengths.tolist() == [20, 20, 20, 20]
        assert sampler.doc_offsets.tolist() == [0, 20, 40, 60, 80]
        assert np.all(sampler.docs[:20] == 0)

    def test_sweep_requires_initialize(self, sampler: CollapsedGibbsSampler):
        with pytest.raises(RuntimeError):
            sampler.sweep()

    def test_initialize_counts(self, sampler: CollapsedGibbsSampler):
        sampler.initialize()
        _assert_counts_consistent(sampler)
        assert sampler.n_topic.sum() == 80
        assert sampler.last_checkpoint.sweep == 0

    def test_sweep_preserves_totals(self, sampler: CollapsedGibbsSampler):
        """Resampling moves tokens between topics, never creates or loses them."""
        sampler.initialize()
        for _ in range(5):
            sampler.sweep()
        _assert_counts_consistent(sampler)
        assert sampler.n_doc_topic.sum(axis=1).tolist() == [20, 20, 20, 20]
        assert sampler.sweeps_completed == 5
        assert sampler.last_checkpoint.sweep == 5

    def test_same_seed_same_chain(self, separation_dtm: DocumentTermMatrix):
        """Identical inputs and seed give bit-identical state."""
        states = []
        for _ in range(2):
            sampler = CollapsedGibbsSampler(separation_dtm, 3, 0.1, 0.01, random_state=11)
            sampler.initialize()
            for _ in range(10):
                sampler.sweep()
            states.append((sampler.z.copy(), sampler.estimate_beta(), sampler.estimate_gamma()))

        assert np.array_equal(states[0][0], states[1][0])
        assert np.array_equal(states[0][1], states[1][1])
        assert np.array_equal(states[0][2], states[1][2])

    def test_estimates_are_distributions(self, sampler: CollapsedGibbsSampler):
        sampler.initialize()
        sampler.sweep()
        assert np.allclose(sampler.estimate_beta().sum(axis=1), 1.0)
        assert np.allclose(sampler.estimate_gamma().sum(axis=1), 1.0)

    def test_checkpoint_is_a_copy(self, sampler: CollapsedGibbsSampler):
        sampler.initialize()
        checkpoint = sampler.checkpoint()
        before = checkpoint.topic_assignments.copy()
        sampler.z[:] = 0
        sampler.n_topic[:] = 0
        assert isinstance(checkpoint, SamplerCheckpoint)
        assert np.array_equal(checkpoint.topic_assignments, before)
        assert checkpoint.n_topic.sum() == 80
        assert checkpoint.sweep == 0
        assert set(checkpoint.to_dict()) == {
            "sweep", "topic_assignments", "n_doc_topic", "n_topic_term", "n_topic",
        }

    def test_corrupted_counts_raise_numeric_error(self, sampler: CollapsedGibbsSampler):
        """Negative counts yield negative probabilities; the last good state is attached."""
        sampler.initialize()
        sampler.sweep()
        sampler.n_topic[:] = -10**6

        with pytest.raises(NumericError) as exc_info:
            sampler.sweep()

        checkpoint = exc_info.value.checkpoint
        assert isinstance(checkpoint, SamplerCheckpoint)
        assert checkpoint.sweep == 1
        assert checkpoint.n_topic.sum() == 80

    def test_empty_document_excluded_from_chain(self, dtm_with_empty_document: DocumentTermMatrix):
        sampler = CollapsedGibbsSampler(dtm_with_empty_document, 2, 0.1, 0.1, random_state=0)
        sampler.initialize()
        sampler.sweep()
        assert sampler.num_tokens == 80
        assert sampler.n_doc_topic[4].sum() == 0
        assert np.allclose(sampler.estimate_gamma()[4], [0.5, 0.5])


class TestApproximateParallelSampler:
    """Tests for the sharded sampler."""

    def test_shards_cover_all_tokens(self, separation_dtm: DocumentTermMatrix):
        sampler = ApproximateParallelSampler(separation_dtm, 2, 0.1, 0.1, random_state=1, num_workers=3)
        covered = [i for shard in sampler.shards for i in shard]
        assert covered == list(range(sampler.num_tokens))

    def test_merged_counts_consistent(self, separation_dtm: DocumentTermMatrix):
        sampler = ApproximateParallelSampler(separation_dtm, 2, 0.1, 0.1, random_state=1, num_workers=2)
        sampler.initialize()
        for _ in range(5):
            sampler.sweep()
        _assert_counts_consistent(sampler)

    def test_deterministic_for_seed_and_workers(self, separation_dtm: DocumentTermMatrix):
        results = []
        for _ in range(2):
            sampler = ApproximateParallelSampler(separation_dtm, 2, 0.1, 0.1, random_state=5, num_workers=2)
            sampler.initialize()
            for _ in range(5):
                sampler.sweep()
            results.append(sampler.z.copy())
        assert np.array_equal(results[0], results[1])

    def test_more_workers_than_documents(self, separation_dtm: DocumentTermMatrix):
        sampler = ApproximateParallelSampler(separation_dtm, 2, 0.1, 0.1, random_state=1, num_workers=6)
        sampler.initialize()
        sampler.sweep()
        _assert_counts_consistent(sampler)
