"""
Unit tests for clinical_topics/features/topic_modeling/evaluation.py

Tests the collapsed log-likelihood, perplexity and convergence check.
No real data dependencies - runs in <1 second.
"""

import math
import warnings

import numpy as np
import pytest
from scipy.special import gammaln

from clinical_topics.exceptions import ConvergenceWarning
from clinical_topics.features.topic_modeling.evaluation import (
    check_convergence,
    collapsed_log_likelihood,
    perplexity,
    umass_coherence,
)


class TestCollapsedLogLikelihood:
    """Tests for collapsed_log_likelihood()."""

    def test_single_token_single_topic_is_certain(self):
        """One token, one topic, one term: probability 1."""
        ll = collapsed_log_likelihood(np.array([[1]]), np.array([[1]]), alpha=0.5, eta=0.5)
        assert ll == pytest.approx(0.0, abs=1e-12)

    def test_matches_closed_form(self):
        """Two tokens of different terms in one topic, K=1, V=2."""
        eta = 0.5
        ll = collapsed_log_likelihood(np.array([[2]]), np.array([[1, 1]]), alpha=1.0, eta=eta)
        # Dirichlet-multinomial: prod (eta)_1 / (V*eta)_2
        expected = 2 * (gammaln(1 + eta) - gammaln(eta)) - (gammaln(2 + 2 * eta) - gammaln(2 * eta))
        assert ll == pytest.approx(float(expected))

    def test_empty_documents_contribute_nothing(self):
        n_topic_term = np.array([[2, 1], [0, 3]])
        with_empty = collapsed_log_likelihood(
            np.array([[2, 0], [1, 3], [0, 0]]), n_topic_term, alpha=0.1, eta=0.01
        )
        without = collapsed_log_likelihood(
            np.array([[2, 0], [1, 3]]), n_topic_term, alpha=0.1, eta=0.01
        )
        assert with_empty == pytest.approx(without)

    def test_concentrated_state_more_likely(self):
        """Tokens of one term in one topic beat the same tokens spread over two."""
        concentrated = collapsed_log_likelihood(np.array([[4, 0]]), np.array([[4], [0]]), 0.1, 0.1)
        spread = collapsed_log_likelihood(np.array([[2, 2]]), np.array([[2], [2]]), 0.1, 0.1)
        assert concentrated > spread


class TestPerplexity:
    """Tests for perplexity()."""

    def test_value(self):
        assert perplexity(-10.0, 5) == pytest.approx(math.exp(2.0))

    def test_no_tokens(self):
        assert perplexity(0.0, 0) is None


class TestCheckConvergence:
    """Tests for check_convergence()."""

    def test_moving_trace_warns(self):
        with pytest.warns(ConvergenceWarning):
            message = check_convergence([-100.0, -90.0, -80.0, -70.0], window=2, tolerance=1e-3)
        assert message is not None
        assert "not stabilized" in message

    def test_flat_trace_silent(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            assert check_convergence([-50.0] * 10, window=5, tolerance=1e-3) is None

    def test_short_trace(self):
        assert check_convergence([-50.0], window=10, tolerance=1e-3) is None

    def test_window_clamped_to_trace(self):
        """A window longer than half the trace still compares two halves."""
        with warnings.catch_warnings():
            warnings.simplefilter("error", ConvergenceWarning)
            assert check_convergence([-70.0, -70.0, -70.0, -70.0], window=50, tolerance=1e-3) is None


class TestUmassCoherence:
    """Tests for umass_coherence()."""

    def test_coherent_topics_score_higher(self, separation_dtm):
        """Terms that co-occur beat terms that never do."""
        coherent = umass_coherence(separation_dtm, [["coronary", "stenosis", "angina"]])
        mixed = umass_coherence(separation_dtm, [["coronary", "femur", "angina"]])
        assert coherent > mixed
