"""
Vocabulary and count aggregation.

Turns a stream of (document id, lemma) pairs into an immutable
term <-> index Vocabulary and a sparse count table.

Usage:
    from clinical_topics.features.document_term import CountAggregator

    table = CountAggregator().aggregate(corpus.iter_pairs(), corpus.document_ids)
    print(len(table.vocabulary), table.total)
"""

import hashlib
import logging
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from clinical_topics.exceptions import VocabularyError
from clinical_topics.preprocessing.models import DocumentId, document_sort_key

logger = logging.getLogger(__name__)


class Vocabulary:
    """
    Immutable bidirectional term <-> index map.

    Indices follow first-seen order and are never reassigned; rebuilding
    a corpus means constructing a new Vocabulary.
    """

    __slots__ = ("_terms", "_index", "_fingerprint")

    def __init__(self, terms: Iterable[str]):
        """
        Args:
            terms: Distinct terms in index order

        Raises:
            VocabularyError: If a term appears twice
        """
        ordered = tuple(terms)
        index = {term: i for i, term in enumerate(ordered)}
        if len(index) != len(ordered):
            raise VocabularyError("Vocabulary terms must be distinct")

        self._terms: Tuple[str, ...] = ordered
        self._index: Mapping[str, int] = MappingProxyType(index)
        self._fingerprint = hashlib.sha256(
            "\x1f".join(ordered).encode("utf-8")
        ).hexdigest()

    @classmethod
    def from_first_seen(cls, tokens: Iterable[str]) -> "Vocabulary":
        """Build a vocabulary in first-seen order from a token stream."""
        return cls(dict.fromkeys(tokens))

    def __len__(self) -> int:
        return len(self._terms)

    def __contains__(self, term: object) -> bool:
        return term in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vocabulary):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __repr__(self) -> str:
        return f"Vocabulary(size={len(self)}, fingerprint={self._fingerprint[:12]})"

    @property
    def terms(self) -> Tuple[str, ...]:
        return self._terms

    @property
    def fingerprint(self) -> str:
        """SHA-256 of the ordered terms; identifies this vocabulary."""
        return self._fingerprint

    def index_of(self, term: str) -> int:
        """Index of term. Raises KeyError for unknown terms."""
        try:
            return self._index[term]
        except KeyError:
            raise KeyError(f"Term not in vocabulary: {term!r}") from None

    def term_at(self, index: int) -> str:
        """Term at index. Raises IndexError when out of range."""
        if index < 0 or index >= len(self._terms):
            raise IndexError(f"Term index {index} out of range for vocabulary of size {len(self)}")
        return self._terms[index]

    def get(self, term: str, default: Optional[int] = None) -> Optional[int]:
        return self._index.get(term, default)


@dataclass(frozen=True)
class CountTable:
    """
    Sparse document x term counts over a vocabulary.

    Attributes:
        vocabulary: Term <-> index map
        document_ids: Every document id, ascending (documents without terms included)
        counts: (document id, term index) -> occurrences (> 0 only)
    """
    vocabulary: Vocabulary
    document_ids: Tuple[DocumentId, ...]
    counts: Mapping[Tuple[DocumentId, int], int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def document_total(self, document_id: DocumentId) -> int:
        return sum(c for (doc, _), c in self.counts.items() if doc == document_id)


class CountAggregator:
    """
    Aggregates (document id, lemma) pairs into a CountTable.

    Partial per-document tables can be produced independently (e.g. on
    worker threads) and merged in a single deterministic reduce step:
    documents are visited in ascending id order, so index assignment never
    depends on scheduling or on how the input pairs were interleaved.
    """

    @staticmethod
    def count_document(document_id: DocumentId, tokens: Iterable[str]) -> Tuple[DocumentId, Counter]:
        """Partial count table for one document (first-seen order preserved)."""
        return document_id, Counter(tokens)

    def merge(
        self,
        partials: Iterable[Tuple[DocumentId, Counter]],
    ) -> CountTable:
        """
        Reduce partial per-document counts into one CountTable.

        Partials for the same document id are summed.
        """
        per_document: Dict[DocumentId, Counter] = {}
        for document_id, counter in partials:
            per_document.setdefault(document_id, Counter()).update(counter)

        document_ids = tuple(sorted(per_document, key=document_sort_key))

        vocabulary = Vocabulary.from_first_seen(
            term
            for document_id in document_ids
            for term in per_document[document_id]
        )

        counts: Dict[Tuple[DocumentId, int], int] = {}
        for document_id in document_ids:
            for term, count in per_document[document_id].items():
                if count > 0:
                    counts[(document_id, vocabulary.index_of(term))] = count

        logger.info(
            f"Aggregated {sum(counts.values())} tokens over {len(document_ids)} documents, "
            f"vocabulary size {len(vocabulary)}"
        )
        return CountTable(
            vocabulary=vocabulary,
            document_ids=document_ids,
            counts=MappingProxyType(counts),
        )

    def aggregate(
        self,
        pairs: Iterable[Tuple[DocumentId, str]],
        document_ids: Optional[Sequence[DocumentId]] = None,
    ) -> CountTable:
        """
        Aggregate (document id, lemma) pairs.

        Args:
            pairs: Token stream; repeated (document, term) pairs accumulate
            document_ids: Documents to include even if they have no pairs

        Returns:
            CountTable with first-seen (by ascending document id) indices
        """
        grouped: Dict[DocumentId, List[str]] = {}
        for document_id in document_ids or ():
            grouped.setdefault(document_id, [])
        for document_id, term in pairs:
            grouped.setdefault(document_id, []).append(term)

        return self.merge(
            self.count_document(document_id, terms)
            for document_id, terms in grouped.items()
        )
