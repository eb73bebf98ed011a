"""
Training diagnostics for LDA.

- collapsed_log_likelihood: log p(w, z) of the current Gibbs state
- check_convergence: ConvergenceWarning when the trace is still moving
- umass_coherence: gensim u_mass coherence of the fitted topics
"""

import logging
import math
import warnings
from typing import List, Optional, Sequence

import numpy as np
from gensim.corpora import Dictionary
from gensim.models import CoherenceModel
from scipy.special import gammaln

from clinical_topics.exceptions import ConvergenceWarning
from clinical_topics.features.document_term import DocumentTermMatrix
from .constants import DEFAULT_CONVERGENCE_TOLERANCE, DEFAULT_CONVERGENCE_WINDOW

logger = logging.getLogger(__name__)


def collapsed_log_likelihood(
    n_doc_topic: np.ndarray,
    n_topic_term: np.ndarray,
    alpha: float,
    eta: float,
) -> float:
    """
    Joint log-likelihood log p(w, z | alpha, eta) with theta and phi
    integrated out.

    Args:
        n_doc_topic: N x K counts
        n_topic_term: K x V counts
        alpha: Document-topic prior
        eta: Topic-term prior
    """
    num_topics, vocabulary_size = n_topic_term.shape
    n_topic = n_topic_term.sum(axis=1)
    n_doc = n_doc_topic.sum(axis=1)

    topic_part = (
        num_topics * (gammaln(vocabulary_size * eta) - vocabulary_size * gammaln(eta))
        + gammaln(n_topic_term + eta).sum()
        - gammaln(n_topic + vocabulary_size * eta).sum()
    )
    # Documents without tokens contribute exactly zero
    active = n_doc > 0
    doc_part = (
        active.sum() * (gammaln(num_topics * alpha) - num_topics * gammaln(alpha))
        + gammaln(n_doc_topic[active] + alpha).sum()
        - gammaln(n_doc[active] + num_topics * alpha).sum()
    )
    return float(topic_part + doc_part)


def perplexity(log_likelihood: float, num_tokens: int) -> Optional[float]:
    """exp(-log-likelihood / tokens), None for an empty chain."""
    if num_tokens <= 0:
        return None
    return float(math.exp(-log_likelihood / num_tokens))


def check_convergence(
    log_likelihoods: Sequence[float],
    window: int = DEFAULT_CONVERGENCE_WINDOW,
    tolerance: float = DEFAULT_CONVERGENCE_TOLERANCE,
) -> Optional[str]:
    """
    Compare the mean of the last two windows of the trace.

    Emits a ConvergenceWarning (and returns its message) when the relative
    change exceeds tolerance. Returns None when the trace has stabilized or
    is too short to judge (fewer than two sweeps).
    """
    if len(log_likelihoods) < 2:
        logger.debug("Log-likelihood trace too short to assess convergence")
        return None

    window = max(1, min(window, len(log_likelihoods) // 2))
    last = float(np.mean(log_likelihoods[-window:]))
    previous = float(np.mean(log_likelihoods[-2 * window:-window]))
    change = abs(last - previous) / max(abs(previous), 1e-12)

    if change <= tolerance:
        logger.info(f"Log-likelihood stabilized (relative change {change:.2e})")
        return None

    message = (
        f"Log-likelihood has not stabilized by the final sweep "
        f"(relative change {change:.2e} > tolerance {tolerance:.2e}); "
        f"consider more iterations"
    )
    logger.warning(message)
    warnings.warn(message, ConvergenceWarning, stacklevel=3)
    return message


def umass_coherence(
    dtm: DocumentTermMatrix,
    topic_terms: List[List[str]],
) -> float:
    """
    u_mass coherence of the given topic term lists over the training DTM.

    Args:
        dtm: Document-term matrix the model was fitted on
        topic_terms: Top terms of each topic

    Returns:
        Mean u_mass coherence (higher is better, typically negative)
    """
    corpus = dtm.to_bow()
    dictionary = Dictionary.from_corpus(
        corpus,
        id2word=dict(enumerate(dtm.vocabulary.terms)),
    )
    coherence_model = CoherenceModel(
        topics=topic_terms,
        corpus=corpus,
        dictionary=dictionary,
        coherence='u_mass',
    )
    return float(coherence_model.get_coherence())
