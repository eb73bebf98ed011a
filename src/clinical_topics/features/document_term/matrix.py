"""
Sparse Document-Term Matrix

Rows are documents (ascending id), columns are vocabulary indices, values
are token counts. Backed by a read-only scipy CSR matrix; zero entries are
never materialised.
"""

import logging
from typing import Any, Dict, Hashable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse

from clinical_topics.exceptions import VocabularyError
from clinical_topics.preprocessing.models import DocumentId, ProcessedCorpus
from .vocabulary import CountAggregator, CountTable, Vocabulary

logger = logging.getLogger(__name__)


class DocumentTermMatrix:
    """
    Immutable sparse document x term count matrix.

    Usage:
        dtm = DocumentTermMatrix.build(count_table)
        dtm.row(doc_id)          # {"knee": 3, "pain": 1}
        dtm.column("knee")       # {doc_id: 3, ...}
        dtm.document_total(doc_id)
    """

    def __init__(
        self,
        matrix: sparse.csr_matrix,
        vocabulary: Vocabulary,
        document_ids: Sequence[DocumentId],
    ):
        if matrix.shape != (len(document_ids), len(vocabulary)):
            raise ValueError(
                f"Matrix shape {matrix.shape} does not match "
                f"{len(document_ids)} documents x {len(vocabulary)} terms"
            )

        matrix = sparse.csr_matrix(matrix, dtype=np.int64, copy=True)
        matrix.eliminate_zeros()
        matrix.sort_indices()
        if matrix.nnz and matrix.data.min() < 0:
            raise ValueError("Document-term counts must be non-negative")
        for buffer in (matrix.data, matrix.indices, matrix.indptr):
            buffer.flags.writeable = False

        self._matrix = matrix
        self._vocabulary = vocabulary
        self._document_ids: Tuple[DocumentId, ...] = tuple(document_ids)
        self._row_of = {doc_id: i for i, doc_id in enumerate(self._document_ids)}
        if len(self._row_of) != len(self._document_ids):
            raise ValueError("Document ids must be unique")

    # ===========================
    # Construction
    # ===========================

    @classmethod
    def build(
        cls,
        count_table: CountTable,
        vocabulary: Optional[Vocabulary] = None,
    ) -> "DocumentTermMatrix":
        """
        Build a DTM from a count table.

        Args:
            count_table: Aggregated counts
            vocabulary: Optional vocabulary; must equal the table's

        Raises:
            VocabularyError: If vocabulary does not match the count table
        """
        if vocabulary is not None and vocabulary.fingerprint != count_table.vocabulary.fingerprint:
            raise VocabularyError("Vocabulary does not match the count table it indexes")
        vocabulary = count_table.vocabulary

        row_of = {doc_id: i for i, doc_id in enumerate(count_table.document_ids)}
        rows, cols, data = [], [], []
        for (doc_id, term_index), count in count_table.counts.items():
            rows.append(row_of[doc_id])
            cols.append(term_index)
            data.append(count)

        matrix = sparse.csr_matrix(
            (np.asarray(data, dtype=np.int64), (np.asarray(rows, dtype=np.int64), np.asarray(cols, dtype=np.int64))),
            shape=(len(count_table.document_ids), len(vocabulary)),
        )
        logger.info(
            f"Built document-term matrix: {matrix.shape[0]} documents x "
            f"{matrix.shape[1]} terms, {matrix.nnz} non-zero entries"
        )
        return cls(matrix, vocabulary, count_table.document_ids)

    @classmethod
    def from_corpus(cls, corpus: ProcessedCorpus) -> "DocumentTermMatrix":
        """Aggregate a processed corpus and build its DTM."""
        table = CountAggregator().aggregate(corpus.iter_pairs(), corpus.document_ids)
        return cls.build(table)

    # ===========================
    # Shape / Identity
    # ===========================

    @property
    def vocabulary(self) -> Vocabulary:
        return self._vocabulary

    @property
    def document_ids(self) -> Tuple[DocumentId, ...]:
        return self._document_ids

    @property
    def num_documents(self) -> int:
        return self._matrix.shape[0]

    @property
    def num_terms(self) -> int:
        return self._matrix.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self._matrix.shape

    @property
    def total(self) -> int:
        """Total token count over the corpus."""
        return int(self._matrix.data.sum())

    @property
    def matrix(self) -> sparse.csr_matrix:
        """Underlying read-only CSR matrix."""
        return self._matrix

    def row_index(self, document_id: DocumentId) -> int:
        try:
            return self._row_of[document_id]
        except KeyError:
            raise KeyError(f"Unknown document id: {document_id!r}") from None

    # ===========================
    # Row / Column Access
    # ===========================

    def row(self, document_id: DocumentId) -> Dict[str, int]:
        """Term counts for a document (non-zero only)."""
        i = self.row_index(document_id)
        start, end = self._matrix.indptr[i], self._matrix.indptr[i + 1]
        return {
            self._vocabulary.term_at(int(j)): int(c)
            for j, c in zip(self._matrix.indices[start:end], self._matrix.data[start:end])
        }

    def column(self, term: str) -> Dict[DocumentId, int]:
        """Document counts for a term (non-zero only)."""
        j = self._vocabulary.index_of(term)
        col = self._matrix.getcol(j).tocoo()
        return {
            self._document_ids[int(i)]: int(c)
            for i, c in sorted(zip(col.row, col.data))
        }

    def document_total(self, document_id: DocumentId) -> int:
        i = self.row_index(document_id)
        return int(self._matrix.data[self._matrix.indptr[i]:self._matrix.indptr[i + 1]].sum())

    def term_total(self, term: str) -> int:
        j = self._vocabulary.index_of(term)
        return int(self._matrix.getcol(j).sum())

    def document_totals(self) -> np.ndarray:
        """Token count per document (row order)."""
        return np.asarray(self._matrix.sum(axis=1)).ravel().astype(np.int64)

    def term_totals(self) -> np.ndarray:
        """Token count per term (vocabulary order)."""
        return np.asarray(self._matrix.sum(axis=0)).ravel().astype(np.int64)

    def empty_documents(self) -> List[DocumentId]:
        """Documents whose row has no counts."""
        totals = self.document_totals()
        return [self._document_ids[i] for i in np.flatnonzero(totals == 0)]

    def most_frequent(self, n: int = 10) -> List[Tuple[str, int]]:
        """Top n terms by corpus-wide count, ties by ascending term."""
        totals = self.term_totals()
        ranked = sorted(
            ((self._vocabulary.term_at(j), int(totals[j])) for j in range(self.num_terms)),
            key=lambda item: (-item[1], item[0]),
        )
        return ranked[:n]

    # ===========================
    # Conversions
    # ===========================

    def to_dense(self) -> np.ndarray:
        """Dense row-major (N x V) int64 copy."""
        return self._matrix.toarray()

    def token_term_indices(self, row: int) -> np.ndarray:
        """
        Expand row into one term index per token occurrence.

        Terms appear in ascending index order, each repeated by its count.
        """
        start, end = self._matrix.indptr[row], self._matrix.indptr[row + 1]
        return np.repeat(
            self._matrix.indices[start:end].astype(np.int64),
            self._matrix.data[start:end],
        )

    def to_bow(self) -> List[List[Tuple[int, int]]]:
        """gensim-style bag-of-words corpus (one (term index, count) list per document)."""
        bow = []
        for i in range(self.num_documents):
            start, end = self._matrix.indptr[i], self._matrix.indptr[i + 1]
            bow.append([
                (int(j), int(c))
                for j, c in zip(self._matrix.indices[start:end], self._matrix.data[start:end])
            ])
        return bow

    def group_counts(
        self,
        group_labels: Mapping[DocumentId, Hashable],
    ) -> Tuple[List[Any], sparse.csr_matrix]:
        """
        Sum document rows into group rows.

        Args:
            group_labels: document id -> group label; documents without a
                label are left out

        Returns:
            (groups in first-seen row order, groups x terms CSR counts)
        """
        groups: List[Any] = []
        group_index: Dict[Any, int] = {}
        rows, cols = [], []
        for i, doc_id in enumerate(self._document_ids):
            if doc_id not in group_labels or group_labels[doc_id] is None:
                continue
            label = group_labels[doc_id]
            if label not in group_index:
                group_index[label] = len(groups)
                groups.append(label)
            rows.append(group_index[label])
            cols.append(i)

        assignment = sparse.csr_matrix(
            (np.ones(len(rows), dtype=np.int64), (rows, cols)),
            shape=(len(groups), self.num_documents),
        )
        return groups, (assignment @ self._matrix).tocsr()

    def __repr__(self) -> str:
        return (
            f"DocumentTermMatrix(documents={self.num_documents}, "
            f"terms={self.num_terms}, nnz={self._matrix.nnz})"
        )
