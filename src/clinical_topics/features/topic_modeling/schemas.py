"""
Topic Modeling Schemas

Pydantic models for the fitted topic model, its persisted artifact,
training metadata and query results.
"""

from typing import Dict, List, Optional, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from clinical_topics.features.document_term import Vocabulary
from .constants import PROBABILITY_TOLERANCE

DocumentId = Union[int, str]


def _read_only_matrix(value) -> np.ndarray:
    matrix = np.array(value, dtype=np.float64, copy=True)
    if matrix.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix, got {matrix.ndim} dimensions")
    matrix.flags.writeable = False
    return matrix


def _check_distribution_rows(name: str, matrix: np.ndarray) -> None:
    if not np.all(np.isfinite(matrix)) or np.any(matrix < 0):
        raise ValueError(f"{name} contains negative or non-finite probabilities")
    sums = matrix.sum(axis=1)
    bad = np.flatnonzero(np.abs(sums - 1.0) > PROBABILITY_TOLERANCE)
    if bad.size:
        raise ValueError(
            f"{name} row {int(bad[0])} sums to {sums[bad[0]]:.8f}, expected 1"
        )


class TopicTerm(BaseModel):
    """A vocabulary term and its probability under one topic."""
    term: str
    weight: float = Field(..., ge=0.0, le=1.0)


class DocumentTopicAssignment(BaseModel):
    """
    Topic mixture of one document.

    Attributes:
        document_id: Source document id
        dominant_topic: argmax of gamma (lowest index on ties)
        gamma: Probability of each topic, topic index ascending
    """
    document_id: DocumentId
    dominant_topic: int = Field(..., ge=0)
    gamma: List[float]


class TopicModel(BaseModel):
    """
    Fitted LDA model (immutable).

    Attributes:
        num_topics: K
        vocabulary_size: V
        num_documents: N
        alpha: Document-topic Dirichlet prior
        eta: Topic-term Dirichlet prior
        seed: Sampler seed
        iterations: Gibbs sweeps completed
        vocabulary: Term <-> index map of the training DTM
        document_ids: Row labels of gamma (ascending)
        beta: K x V topic-term probabilities (rows sum to 1)
        gamma: N x K document-topic probabilities (rows sum to 1)
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    num_topics: int = Field(..., ge=1)
    vocabulary_size: int = Field(..., ge=1)
    num_documents: int = Field(..., ge=1)
    alpha: float = Field(..., gt=0.0)
    eta: float = Field(..., gt=0.0)
    seed: int
    iterations: int = Field(..., ge=0)
    vocabulary: Vocabulary
    document_ids: Tuple[DocumentId, ...]
    beta: np.ndarray
    gamma: np.ndarray

    @field_validator('beta', 'gamma', mode='before')
    @classmethod
    def coerce_matrix(cls, v) -> np.ndarray:
        """Store probabilities as read-only float64 arrays."""
        return _read_only_matrix(v)

    @model_validator(mode='after')
    def validate_shapes(self) -> "TopicModel":
        """Check K/V/N consistency and that every row is a distribution."""
        k, v, n = self.num_topics, self.vocabulary_size, self.num_documents
        if self.beta.shape != (k, v):
            raise ValueError(f"beta shape {self.beta.shape} != ({k}, {v})")
        if self.gamma.shape != (n, k):
            raise ValueError(f"gamma shape {self.gamma.shape} != ({n}, {k})")
        if len(self.vocabulary) != v:
            raise ValueError(f"vocabulary size {len(self.vocabulary)} != {v}")
        if len(self.document_ids) != n:
            raise ValueError(f"{len(self.document_ids)} document ids != {n}")
        if len(set(self.document_ids)) != n:
            raise ValueError("document ids must be unique")
        _check_distribution_rows("beta", self.beta)
        _check_distribution_rows("gamma", self.gamma)
        return self

    def document_index(self, document_id: DocumentId) -> int:
        """Row of gamma for a document id. Raises KeyError if unknown."""
        try:
            return self.document_ids.index(document_id)
        except ValueError:
            raise KeyError(f"Unknown document id: {document_id!r}") from None

    def to_artifact(self) -> "ModelArtifact":
        """Structured record for persistence / interchange."""
        return ModelArtifact(
            header=ArtifactHeader(
                num_topics=self.num_topics,
                vocabulary_size=self.vocabulary_size,
                num_documents=self.num_documents,
                alpha=self.alpha,
                eta=self.eta,
                seed=self.seed,
                iterations=self.iterations,
            ),
            vocabulary=[
                VocabularyEntry(index=i, term=term)
                for i, term in enumerate(self.vocabulary.terms)
            ],
            document_ids=list(self.document_ids),
            beta=self.beta.tolist(),
            gamma=self.gamma.tolist(),
        )

    @classmethod
    def from_artifact(cls, artifact: "ModelArtifact") -> "TopicModel":
        """Rebuild a model from its artifact."""
        entries = sorted(artifact.vocabulary, key=lambda entry: entry.index)
        if [entry.index for entry in entries] != list(range(len(entries))):
            raise ValueError("Vocabulary indices must be contiguous from 0")

        header = artifact.header
        return cls(
            num_topics=header.num_topics,
            vocabulary_size=header.vocabulary_size,
            num_documents=header.num_documents,
            alpha=header.alpha,
            eta=header.eta,
            seed=header.seed,
            iterations=header.iterations,
            vocabulary=Vocabulary(entry.term for entry in entries),
            document_ids=tuple(artifact.document_ids),
            beta=artifact.beta,
            gamma=artifact.gamma,
        )


class ArtifactHeader(BaseModel):
    """Model artifact header."""
    num_topics: int = Field(..., ge=1)
    vocabulary_size: int = Field(..., ge=1)
    num_documents: int = Field(..., ge=1)
    alpha: float = Field(..., gt=0.0)
    eta: float = Field(..., gt=0.0)
    seed: int
    iterations: int = Field(..., ge=0)


class VocabularyEntry(BaseModel):
    index: int = Field(..., ge=0)
    term: str


class ModelArtifact(BaseModel):
    """
    Persisted topic model.

    beta rows are ordered by topic index ascending, gamma rows by
    document id ascending (document_ids gives the order).
    """
    header: ArtifactHeader
    vocabulary: List[VocabularyEntry]
    document_ids: List[DocumentId]
    beta: List[List[float]]
    gamma: List[List[float]]


class LDAModelInfo(BaseModel):
    """
    Information about a trained LDA model.

    Attributes:
        num_topics: Number of topics
        num_documents: Number of documents in training corpus
        vocabulary_size: Size of vocabulary
        num_tokens: Token occurrences in the Markov chain
        iterations: Sweeps requested
        iterations_completed: Sweeps actually run (fewer after an early stop)
        alpha: Document-topic prior
        eta: Topic-term prior
        random_state: Sampler seed
        sampler: "sequential" or "approximate_parallel"
        num_workers: Shards used by the approximate sampler
        log_likelihoods: Collapsed joint log-likelihood per sweep (if enabled)
        perplexity: exp(-log-likelihood / tokens) at the final sweep (if enabled)
        coherence_score: u_mass topic coherence (if enabled)
        topic_top_words: Top words for each topic
        empty_documents: Documents excluded from the chain (uniform gamma)
        warnings: Non-fatal issues raised during training
        vocabulary_fingerprint: Identifies the vocabulary the model indexes
        training_date: ISO timestamp
    """
    num_topics: int = Field(..., ge=1)
    num_documents: int = Field(..., ge=0)
    vocabulary_size: int = Field(..., ge=0)
    num_tokens: int = Field(..., ge=0)
    iterations: int = Field(..., ge=1)
    iterations_completed: int = Field(..., ge=0)
    alpha: float
    eta: float
    random_state: int
    sampler: str = "sequential"
    num_workers: int = Field(default=1, ge=1)
    stopped_early: bool = False
    log_likelihoods: List[float] = Field(default_factory=list)
    perplexity: Optional[float] = Field(default=None)
    coherence_score: Optional[float] = Field(default=None)
    topic_top_words: Optional[Dict[int, List[Tuple[str, float]]]] = Field(
        default=None,
        description="Top words for each topic with probabilities"
    )
    empty_documents: List[DocumentId] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    vocabulary_fingerprint: Optional[str] = None
    training_date: Optional[str] = None

    def get_topic_description(self, topic_id: int, num_words: int = 10) -> str:
        """
        Get human-readable description of a topic.

        Args:
            topic_id: Topic ID
            num_words: Number of top words to include

        Returns:
            String description of the topic
        """
        label = f"Topic {topic_id}"

        if self.topic_top_words and topic_id in self.topic_top_words:
            words = self.topic_top_words[topic_id][:num_words]
            word_str = ", ".join([w[0] for w in words])
            return f"{label}: {word_str}"

        return label
