"""
Topic Model Analyzer

Read-only projections over a fitted TopicModel: top terms per topic,
dominant topic per document, and per-group topic summaries.

Usage:
    from clinical_topics.features.topic_modeling import TopicModelAnalyzer

    analyzer = TopicModelAnalyzer(model)
    print(analyzer.top_terms(0, n=10))
    print(analyzer.dominant_topic(doc_id))
"""

import logging
import math
from collections import defaultdict
from typing import Any, Dict, Hashable, List, Mapping, Optional

import numpy as np

from .constants import DEFAULT_TOP_WORDS, DOMINANT_TOPIC_THRESHOLD
from .schemas import DocumentId, DocumentTopicAssignment, TopicModel, TopicTerm

logger = logging.getLogger(__name__)


def top_terms(model: TopicModel, topic: int, n: int = DEFAULT_TOP_WORDS) -> List[TopicTerm]:
    """
    The n terms with the highest beta[topic], ties broken by ascending term.

    Raises:
        ValueError: If topic is out of range or n is negative
    """
    if not 0 <= topic < model.num_topics:
        raise ValueError(f"Topic {topic} out of range for a model with {model.num_topics} topics")
    if n < 0:
        raise ValueError(f"n must be non-negative, got {n}")

    row = model.beta[topic]
    terms = model.vocabulary.terms
    order = sorted(range(model.vocabulary_size), key=lambda j: (-row[j], terms[j]))
    return [TopicTerm(term=terms[j], weight=float(row[j])) for j in order[:n]]


def dominant_topic(model: TopicModel, document_id: DocumentId) -> int:
    """argmax_k gamma[document], lowest topic index on ties."""
    row = model.gamma[model.document_index(document_id)]
    return int(np.argmax(row))


def document_topics(model: TopicModel) -> List[DocumentTopicAssignment]:
    """(document, dominant topic, gamma vector) for every document, id ascending."""
    return [
        DocumentTopicAssignment(
            document_id=document_id,
            dominant_topic=int(np.argmax(model.gamma[i])),
            gamma=model.gamma[i].tolist(),
        )
        for i, document_id in enumerate(model.document_ids)
    ]


class TopicModelAnalyzer:
    """
    Topic Model feature extractor.

    This class:
    1. Ranks representative terms of each topic
    2. Assigns each document its dominant topic
    3. Summarizes topic mixtures per document group (e.g. specialty)

    Usage:
        analyzer = TopicModelAnalyzer(model)
        assignments = analyzer.document_topics()
        by_specialty = analyzer.group_topic_means(corpus.group_labels())
    """

    def __init__(self, model: TopicModel):
        self.model = model
        self.num_topics = model.num_topics

    def top_terms(self, topic: int, n: int = DEFAULT_TOP_WORDS) -> List[TopicTerm]:
        return top_terms(self.model, topic, n)

    def dominant_topic(self, document_id: DocumentId) -> int:
        return dominant_topic(self.model, document_id)

    def document_topics(self) -> List[DocumentTopicAssignment]:
        return document_topics(self.model)

    def topic_distribution(self, document_id: DocumentId) -> List[float]:
        """gamma row of a document."""
        return self.model.gamma[self.model.document_index(document_id)].tolist()

    def topic_entropy(self, document_id: DocumentId) -> float:
        """
        Shannon entropy (bits) of a document's topic mixture.

        Low entropy: document focused on few topics
        High entropy: document covers many topics equally
        """
        entropy = 0.0
        for prob in self.topic_distribution(document_id):
            if prob > 0:
                entropy -= prob * math.log2(prob)
        return entropy

    def significant_topics(
        self,
        document_id: DocumentId,
        threshold: float = DOMINANT_TOPIC_THRESHOLD,
    ) -> List[int]:
        """Topics whose probability in the document is at least threshold."""
        return [
            k for k, prob in enumerate(self.topic_distribution(document_id))
            if prob >= threshold
        ]

    def describe_topic(self, topic: int, num_words: int = DEFAULT_TOP_WORDS) -> str:
        """Human-readable 'Topic k: term, term, ...' string."""
        words = ", ".join(t.term for t in self.top_terms(topic, num_words))
        return f"Topic {topic}: {words}"

    def group_topic_means(
        self,
        group_labels: Mapping[DocumentId, Hashable],
    ) -> Dict[Any, List[float]]:
        """
        Mean gamma of the documents in each group.

        Args:
            group_labels: document id -> group label (unknown ids ignored)

        Returns:
            group -> mean topic distribution (groups in first-seen order)
        """
        rows: Dict[Any, List[int]] = defaultdict(list)
        for i, document_id in enumerate(self.model.document_ids):
            label = group_labels.get(document_id)
            if label is not None:
                rows[label].append(i)

        return {
            group: self.model.gamma[indices].mean(axis=0).tolist()
            for group, indices in rows.items()
        }

    def dominant_topic_counts(
        self,
        group_labels: Optional[Mapping[DocumentId, Hashable]] = None,
    ) -> Dict[Any, List[int]]:
        """
        Number of documents per dominant topic, overall (key None) or per group.
        """
        counts: Dict[Any, List[int]] = defaultdict(lambda: [0] * self.num_topics)
        for assignment in self.document_topics():
            key = None
            if group_labels is not None:
                key = group_labels.get(assignment.document_id)
                if key is None:
                    continue
            counts[key][assignment.dominant_topic] += 1
        return dict(counts)
