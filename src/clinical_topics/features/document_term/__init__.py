"""
Document-Term Module

Builds the stable term <-> index vocabulary, per-document count tables and
the sparse document-term matrix consumed by TF-IDF and the LDA trainer.

Workflow:
    ```python
    from clinical_topics.features.document_term import CountAggregator, DocumentTermMatrix

    table = CountAggregator().aggregate(corpus.iter_pairs(), corpus.document_ids)
    dtm = DocumentTermMatrix.build(table)
    print(dtm.row(corpus.document_ids[0]))
    ```
"""

from .vocabulary import Vocabulary, CountTable, CountAggregator
from .matrix import DocumentTermMatrix

__all__ = [
    "Vocabulary",
    "CountTable",
    "CountAggregator",
    "DocumentTermMatrix",
]
