"""
Pydantic models for clinical documents moving through preprocessing.

Contains the raw input record, the transient token record and the
processed (retained-token) document and corpus collections.
"""

from typing import Any, Dict, Hashable, Iterator, List, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

DocumentId = Union[int, str]


def document_sort_key(document_id: DocumentId) -> Tuple[bool, Any]:
    """Sort key for document ids: ints first (numeric order), then strings."""
    return (isinstance(document_id, str), document_id)


class Document(BaseModel):
    """Raw clinical document as supplied by an external loader."""
    model_config = ConfigDict(frozen=True)

    id: DocumentId
    text: str
    group_label: Optional[Any] = None   # opaque (e.g. medical specialty)

    @field_validator('group_label')
    @classmethod
    def validate_hashable(cls, v: Any) -> Any:
        """Group labels are used as dictionary keys."""
        if v is not None and not isinstance(v, Hashable):
            raise ValueError(f"group_label must be hashable, got {type(v).__name__}")
        return v


class Token(NamedTuple):
    """Normalized token with its source document and position."""
    text: str
    document_id: DocumentId
    position: int


class ProcessedDocument(BaseModel):
    """Retained (post-filter, post-lemma) tokens of one document."""
    model_config = ConfigDict(frozen=True)

    id: DocumentId
    group_label: Optional[Any] = None
    tokens: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.tokens)

    def iter_tokens(self) -> Iterator[Token]:
        """Yield Token records in sequence order."""
        for position, text in enumerate(self.tokens):
            yield Token(text, self.id, position)


class ProcessedCorpus(BaseModel):
    """
    Processed documents ordered by ascending document id.

    Attributes:
        documents: Processed documents (id ascending)
        skipped: Messages for records rejected with InputError
    """
    model_config = ConfigDict(frozen=True)

    documents: Tuple[ProcessedDocument, ...] = ()
    skipped: Tuple[str, ...] = Field(default=())

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def document_ids(self) -> List[DocumentId]:
        return [doc.id for doc in self.documents]

    def iter_pairs(self) -> Iterator[Tuple[DocumentId, str]]:
        """Yield (document id, lemma) pairs for vocabulary aggregation."""
        for doc in self.documents:
            for token in doc.tokens:
                yield doc.id, token

    def group_labels(self) -> Dict[DocumentId, Any]:
        """Map document id -> group label (documents without a label omitted)."""
        return {
            doc.id: doc.group_label
            for doc in self.documents
            if doc.group_label is not None
        }

    @property
    def warnings(self) -> List[str]:
        """All per-document warnings plus skipped-record messages."""
        collected = list(self.skipped)
        for doc in self.documents:
            collected.extend(doc.warnings)
        return collected
