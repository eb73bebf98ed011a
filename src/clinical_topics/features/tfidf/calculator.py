"""
Group-level TF-IDF

For a grouping key g (e.g. medical specialty) and term t:

    tf(t, g)     = count(t, g) / total_terms(g)
    idf(t)       = log(N_groups / df(t))      df = groups containing t, no smoothing
    tf_idf(t, g) = tf(t, g) * idf(t)

A term present in every group has idf = 0 and therefore tf_idf = 0 in
every group, however frequent it is.

Usage:
    from clinical_topics.features.tfidf import TfidfCalculator

    table = TfidfCalculator().fit_corpus(corpus)
    for weight in table.top_n("Surgery", 10):
        print(weight.term, weight.tf_idf)
"""

import logging
from typing import Any, Dict, Hashable, List, Mapping, Optional

import numpy as np

from clinical_topics.config import settings
from clinical_topics.exceptions import VocabularyError
from clinical_topics.features.document_term import DocumentTermMatrix, Vocabulary
from clinical_topics.preprocessing.models import DocumentId, ProcessedCorpus
from .schemas import GroupTermRecord, TermWeight

logger = logging.getLogger(__name__)


class TfidfTable:
    """
    Read-only TF-IDF weights for every (group, term) pair.

    Attributes:
        groups: Group labels (first-seen order over ascending document ids)
        vocabulary: Term <-> index map shared with the source DTM
        counts: groups x terms int64 counts
        tf, tf_idf: groups x terms float64
        idf: per-term float64
    """

    def __init__(
        self,
        groups: List[Any],
        vocabulary: Vocabulary,
        counts: np.ndarray,
    ):
        self.groups = list(groups)
        self.vocabulary = vocabulary
        self._group_index = {group: i for i, group in enumerate(self.groups)}

        self.counts = np.asarray(counts, dtype=np.int64)
        totals = self.counts.sum(axis=1, keepdims=True)
        self.tf = np.divide(
            self.counts,
            totals,
            out=np.zeros(self.counts.shape, dtype=np.float64),
            where=totals > 0,
        )

        df = (self.counts > 0).sum(axis=0)
        num_groups = len(self.groups)
        self.idf = np.zeros(self.counts.shape[1], dtype=np.float64)
        present = df > 0
        self.idf[present] = np.log(num_groups / df[present])
        self.df = df

        self.tf_idf = self.tf * self.idf
        for array in (self.counts, self.tf, self.idf, self.tf_idf):
            array.flags.writeable = False

    def _group_row(self, group: Hashable) -> int:
        try:
            return self._group_index[group]
        except KeyError:
            raise KeyError(f"Unknown group: {group!r}") from None

    def idf_of(self, term: str) -> float:
        return float(self.idf[self.vocabulary.index_of(term)])

    def tf_of(self, term: str, group: Hashable) -> float:
        return float(self.tf[self._group_row(group), self.vocabulary.index_of(term)])

    def tf_idf_of(self, term: str, group: Hashable) -> float:
        return float(self.tf_idf[self._group_row(group), self.vocabulary.index_of(term)])

    def weight(self, term: str, group: Hashable) -> TermWeight:
        """TermWeight for one (term, group) pair."""
        return self._weight(self._group_row(group), self.vocabulary.index_of(term))

    def _weight(self, row: int, j: int) -> TermWeight:
        return TermWeight(
            term=self.vocabulary.term_at(j),
            count=int(self.counts[row, j]),
            tf=float(self.tf[row, j]),
            idf=float(self.idf[j]),
            tf_idf=float(self.tf_idf[row, j]),
        )

    def top_n(self, group: Hashable, n: Optional[int] = None) -> List[TermWeight]:
        """
        Highest tf_idf terms of a group.

        Only terms occurring in the group are ranked; ties are broken by
        ascending term so repeated calls return the same order.

        Args:
            group: Group label
            n: Number of terms (default from settings.tfidf.top_n)
        """
        if n is None:
            n = settings.tfidf.top_n  # pylint: disable=no-member
        if n < 0:
            raise ValueError(f"n must be non-negative, got {n}")

        row = self._group_row(group)
        candidates = np.flatnonzero(self.counts[row] > 0)
        ranked = sorted(
            candidates,
            key=lambda j: (-self.tf_idf[row, j], self.vocabulary.term_at(int(j))),
        )
        return [self._weight(row, int(j)) for j in ranked[:n]]

    def top_n_by_group(self, n: Optional[int] = None) -> Dict[Any, List[TermWeight]]:
        """top_n for every group."""
        return {group: self.top_n(group, n) for group in self.groups}

    def to_records(self) -> List[GroupTermRecord]:
        """Every non-zero (group, term) weight as a flat record."""
        records = []
        for row, group in enumerate(self.groups):
            for j in np.flatnonzero(self.counts[row] > 0):
                weight = self._weight(row, int(j))
                records.append(GroupTermRecord(group=group, **weight.model_dump()))
        return records

    def __repr__(self) -> str:
        return f"TfidfTable(groups={len(self.groups)}, terms={len(self.vocabulary)})"


class TfidfCalculator:
    """
    Derives group-level TF-IDF weights from a document-term matrix.

    Usage:
        calculator = TfidfCalculator()
        table = calculator.fit(dtm, {doc_id: "Surgery", ...})
    """

    def fit(
        self,
        dtm: DocumentTermMatrix,
        group_labels: Mapping[DocumentId, Hashable],
    ) -> TfidfTable:
        """
        Compute TF-IDF over document groups.

        Args:
            dtm: Finished document-term matrix
            group_labels: document id -> group label

        Returns:
            TfidfTable

        Raises:
            VocabularyError: If the DTM has no terms or no document carries a label
        """
        if dtm.num_terms == 0:
            raise VocabularyError("Cannot compute TF-IDF over an empty vocabulary")

        unlabeled = [
            doc_id for doc_id in dtm.document_ids
            if group_labels.get(doc_id) is None
        ]
        if unlabeled:
            logger.warning(
                "%d documents have no group label and are excluded from TF-IDF",
                len(unlabeled),
            )

        groups, counts = dtm.group_counts(group_labels)
        if not groups:
            raise VocabularyError("No labelled documents to group for TF-IDF")

        table = TfidfTable(groups, dtm.vocabulary, counts.toarray())
        logger.info(f"Computed TF-IDF for {len(groups)} groups x {dtm.num_terms} terms")
        return table

    def fit_corpus(
        self,
        corpus: ProcessedCorpus,
        dtm: Optional[DocumentTermMatrix] = None,
    ) -> TfidfTable:
        """Compute TF-IDF grouped by each document's group_label."""
        if dtm is None:
            dtm = DocumentTermMatrix.from_corpus(corpus)
        return self.fit(dtm, corpus.group_labels())
