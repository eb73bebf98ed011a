"""
Collapsed Gibbs sampling for LDA.

CollapsedGibbsSampler is the exact, sequential reference: one explicit
seeded generator, one Markov chain over every token occurrence, bit-identical
output for identical corpus, hyperparameters and seed.

ApproximateParallelSampler shards documents across worker threads. Each
shard resamples its tokens against a private copy of the topic-term counts
and the copies are merged once per sweep (approximate distributed LDA). It
is deterministic for a fixed seed and worker count, but it is a different
algorithm and does not reproduce the sequential chain.

Per-token conditional:

    P(z = k) ∝ (n_doc_topic[d, k] + alpha)
               * (n_topic_term[k, w] + eta) / (n_topic[k] + V * eta)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from clinical_topics.exceptions import NumericError
from clinical_topics.features.document_term import DocumentTermMatrix
from clinical_topics.utils.parallel import ParallelProcessor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplerCheckpoint:
    """
    Sampler state at the end of a completed sweep (sweep 0 = initialization).

    Attributes:
        sweep: Sweeps completed when the state was captured
        topic_assignments: z for every token occurrence
        n_doc_topic: N x K counts
        n_topic_term: K x V counts
        n_topic: K counts
    """
    sweep: int
    topic_assignments: np.ndarray
    n_doc_topic: np.ndarray
    n_topic_term: np.ndarray
    n_topic: np.ndarray

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sweep": self.sweep,
            "topic_assignments": self.topic_assignments.tolist(),
            "n_doc_topic": self.n_doc_topic.tolist(),
            "n_topic_term": self.n_topic_term.tolist(),
            "n_topic": self.n_topic.tolist(),
        }


def resample_tokens(
    token_indices: Sequence[int],
    docs: np.ndarray,
    terms: np.ndarray,
    z: np.ndarray,
    n_doc_topic: np.ndarray,
    n_term_topic: np.ndarray,
    n_topic: np.ndarray,
    alpha: float,
    eta: float,
    rng: np.random.Generator,
    checkpoint: Optional[SamplerCheckpoint] = None,
) -> None:
    """
    Resample the topic of every token in token_indices, in order.

    Counts are updated in place. n_term_topic is stored term-major (V x K)
    so the per-token column read is contiguous.

    Raises:
        NumericError: If a conditional contains NaN, negative or
            non-finite values (corrupted counts)
    """
    num_topics = n_topic.shape[0]
    v_eta = n_term_topic.shape[0] * eta

    for i in token_indices:
        d = docs[i]
        w = terms[i]
        k = z[i]

        n_doc_topic[d, k] -= 1
        n_term_topic[w, k] -= 1
        n_topic[k] -= 1

        p = (n_doc_topic[d] + alpha) * (n_term_topic[w] + eta) / (n_topic + v_eta)
        cumulative = np.cumsum(p)
        total = cumulative[-1]
        if not np.isfinite(total) or total <= 0.0 or np.any(p < 0.0):
            raise NumericError(
                f"Invalid topic conditional for token {int(i)} "
                f"(document row {int(d)}, term {int(w)}): {p.tolist()}",
                checkpoint=checkpoint,
            )

        k = int(np.searchsorted(cumulative, rng.random() * total, side='right'))
        if k >= num_topics:
            k = num_topics - 1

        z[i] = k
        n_doc_topic[d, k] += 1
        n_term_topic[w, k] += 1
        n_topic[k] += 1


class CollapsedGibbsSampler:
    """
    Sequential collapsed Gibbs sampler (determinism reference).

    Usage:
        sampler = CollapsedGibbsSampler(dtm, num_topics=5, alpha=0.1, eta=0.01, random_state=42)
        sampler.initialize()
        for _ in range(200):
            sampler.sweep()
        beta, gamma = sampler.estimate_beta(), sampler.estimate_gamma()
    """

    name = "sequential"

    def __init__(
        self,
        dtm: DocumentTermMatrix,
        num_topics: int,
        alpha: float,
        eta: float,
        random_state: int,
    ):
        self.num_topics = num_topics
        self.num_documents = dtm.num_documents
        self.vocabulary_size = dtm.num_terms
        self.alpha = float(alpha)
        self.eta = float(eta)
        self.random_state = random_state
        self.rng = np.random.Generator(np.random.PCG64(random_state))

        # One entry per token occurrence; documents in row order
        per_document = [dtm.token_term_indices(row) for row in range(self.num_documents)]
        self.doc_lengths = np.array([len(tokens) for tokens in per_document], dtype=np.int64)
        self.doc_offsets = np.concatenate([[0], np.cumsum(self.doc_lengths)]).astype(np.int64)
        self.terms = (
            np.concatenate(per_document).astype(np.int64)
            if per_document else np.zeros(0, dtype=np.int64)
        )
        self.docs = np.repeat(np.arange(self.num_documents, dtype=np.int64), self.doc_lengths)

        self.z = np.zeros(self.num_tokens, dtype=np.int64)
        self.n_doc_topic = np.zeros((self.num_documents, num_topics), dtype=np.int64)
        self.n_term_topic = np.zeros((self.vocabulary_size, num_topics), dtype=np.int64)
        self.n_topic = np.zeros(num_topics, dtype=np.int64)

        self.sweeps_completed = 0
        self.initialized = False
        self._checkpoint: Optional[SamplerCheckpoint] = None

    @property
    def num_tokens(self) -> int:
        return int(self.terms.shape[0])

    @property
    def n_topic_term(self) -> np.ndarray:
        """K x V view of the topic-term counts."""
        return self.n_term_topic.T

    @property
    def last_checkpoint(self) -> Optional[SamplerCheckpoint]:
        return self._checkpoint

    def checkpoint(self) -> SamplerCheckpoint:
        """Copy of the current state."""
        return SamplerCheckpoint(
            sweep=self.sweeps_completed,
            topic_assignments=self.z.copy(),
            n_doc_topic=self.n_doc_topic.copy(),
            n_topic_term=self.n_topic_term.copy(),
            n_topic=self.n_topic.copy(),
        )

    def initialize(self) -> None:
        """Assign every token a uniformly random topic and fill the counts."""
        self.z = self.rng.integers(0, self.num_topics, size=self.num_tokens, dtype=np.int64)
        self.n_doc_topic.fill(0)
        self.n_term_topic.fill(0)
        np.add.at(self.n_doc_topic, (self.docs, self.z), 1)
        np.add.at(self.n_term_topic, (self.terms, self.z), 1)
        self.n_topic = np.bincount(self.z, minlength=self.num_topics).astype(np.int64)

        self.sweeps_completed = 0
        self.initialized = True
        self._checkpoint = self.checkpoint()

    def sweep(self) -> None:
        """Resample every token once, then checkpoint."""
        if not self.initialized:
            raise RuntimeError("Sampler must be initialized before sweeping")

        self._run_sweep()
        self.sweeps_completed += 1
        self._checkpoint = self.checkpoint()

    def _run_sweep(self) -> None:
        resample_tokens(
            range(self.num_tokens),
            self.docs, self.terms, self.z,
            self.n_doc_topic, self.n_term_topic, self.n_topic,
            self.alpha, self.eta, self.rng,
            checkpoint=self._checkpoint,
        )

    def estimate_beta(self) -> np.ndarray:
        """beta[k, w] = (n_topic_term[k, w] + eta) / (n_topic[k] + V * eta)"""
        return (
            (self.n_topic_term + self.eta)
            / (self.n_topic[:, None] + self.vocabulary_size * self.eta)
        )

    def estimate_gamma(self) -> np.ndarray:
        """gamma[d, k] = (n_doc_topic[d, k] + alpha) / (n_d + K * alpha)"""
        return (
            (self.n_doc_topic + self.alpha)
            / (self.n_doc_topic.sum(axis=1, keepdims=True) + self.num_topics * self.alpha)
        )


class ApproximateParallelSampler(CollapsedGibbsSampler):
    """
    Sharded sampler: documents split into num_workers contiguous shards,
    each resampled on its own thread against local topic-term counts; local
    deltas are summed into the global counts once per sweep.

    Each shard draws from its own generator spawned from the seed, so the
    result depends on the seed and num_workers but not on thread scheduling.
    """

    name = "approximate_parallel"

    def __init__(
        self,
        dtm: DocumentTermMatrix,
        num_topics: int,
        alpha: float,
        eta: float,
        random_state: int,
        num_workers: int,
    ):
        super().__init__(dtm, num_topics, alpha, eta, random_state)
        self.num_workers = num_workers
        self.processor = ParallelProcessor(max_workers=num_workers)

        seeds = np.random.SeedSequence(random_state).spawn(num_workers)
        self.shard_rngs = [np.random.Generator(np.random.PCG64(seed)) for seed in seeds]

        self.shards: List[range] = []
        for rows in np.array_split(np.arange(self.num_documents), num_workers):
            if rows.size == 0:
                self.shards.append(range(0))
                continue
            start = int(self.doc_offsets[rows[0]])
            end = int(self.doc_offsets[rows[-1] + 1])
            self.shards.append(range(start, end))

    def _run_sweep(self) -> None:
        snapshot_term_topic = self.n_term_topic.copy()
        snapshot_topic = self.n_topic.copy()

        def run_shard(shard: int) -> Tuple[np.ndarray, np.ndarray]:
            local_term_topic = snapshot_term_topic.copy()
            local_topic = snapshot_topic.copy()
            # z and n_doc_topic rows are disjoint between shards
            resample_tokens(
                self.shards[shard],
                self.docs, self.terms, self.z,
                self.n_doc_topic, local_term_topic, local_topic,
                self.alpha, self.eta, self.shard_rngs[shard],
                checkpoint=self._checkpoint,
            )
            return local_term_topic - snapshot_term_topic, local_topic - snapshot_topic

        deltas = self.processor.map(run_shard, list(range(self.num_workers)))
        for term_topic_delta, topic_delta in deltas:
            self.n_term_topic += term_topic_delta
            self.n_topic += topic_delta
