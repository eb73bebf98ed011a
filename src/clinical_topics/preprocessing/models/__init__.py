"""
Pydantic data models for the clinical preprocessing pipeline.

- document: Document, Token, ProcessedDocument, ProcessedCorpus
"""
from .document import (
    Document,
    DocumentId,
    Token,
    ProcessedDocument,
    ProcessedCorpus,
    document_sort_key,
)

__all__ = [
    'Document',
    'DocumentId',
    'Token',
    'ProcessedDocument',
    'ProcessedCorpus',
    'document_sort_key',
]
