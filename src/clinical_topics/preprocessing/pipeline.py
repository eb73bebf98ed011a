"""
Preprocessing Pipeline for Clinical Documents

Orchestrates the complete preprocessing flow:
1. Validate - Reject malformed records (InputError, non-fatal)
2. Clean - Word tokenize, strip, digit filter, stopword filter
3. Lemmatize - Injected token -> lemma function
4. Segment - Optional n-gram windows over the cleaned lemmas

Documents are processed independently (optionally on a thread pool) and
returned ordered by ascending document id.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clinical_topics.config import settings
from clinical_topics.exceptions import ConfigError, InputError
from clinical_topics.utils.parallel import ParallelProcessor
from .cleaning import Lemmatizer, StopwordFilter, TextCleaner, resolve_lemmatizer
from .constants import DEFAULT_NGRAM_SIZE, WHITESPACE_PATTERN, SegmentMode
from .models import Document, ProcessedCorpus, ProcessedDocument, document_sort_key
from .segmenter import Segmenter, ngrams_from_tokens

logger = logging.getLogger(__name__)

RawRecord = Union[Document, Mapping[str, Any]]


class PipelineConfig(BaseModel):
    """
    Configuration for the preprocessing pipeline (Pydantic V2)

    Attributes:
        token_mode: Unit emitted per document ("word" or "ngram")
        ngram_size: Window size when token_mode is "ngram"
        max_workers: Threads for per-document processing (1 = sequential)
    """
    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',  # Raise error on unknown fields
    )

    # pylint: disable=no-member
    token_mode: SegmentMode = Field(
        default_factory=lambda: SegmentMode(settings.preprocessing.token_mode),
        description="Token unit counted in the document-term matrix"
    )
    ngram_size: int = Field(
        default_factory=lambda: settings.preprocessing.ngram_size,
        description="n for n-gram mode"
    )
    max_workers: int = Field(
        default_factory=lambda: settings.preprocessing.max_workers,
        description="Worker threads for tokenization"
    )
    # pylint: enable=no-member


class CorpusPipeline:
    """
    Complete preprocessing pipeline for clinical documents

    Flow: Validate → Clean → Lemmatize → (n-gram) Segment

    Example:
        >>> pipeline = CorpusPipeline(stopwords={"the", "was"}, lemmatizer=identity_lemmatizer)
        >>> corpus = pipeline.process_corpus([
        ...     {"id": 1, "text": "The knee was swollen.", "group_label": "Orthopedic"},
        ... ])
        >>> corpus.documents[0].tokens
        ('knee', 'swollen')
    """

    def __init__(
        self,
        stopwords: Optional[Iterable[str]],
        lemmatizer: Optional[Lemmatizer],
        config: Optional[PipelineConfig] = None,
    ):
        """
        Initialize the preprocessing pipeline

        Args:
            stopwords: Stopword set (required; may be empty)
            lemmatizer: token -> lemma function (required)
            config: Pipeline configuration. Uses settings defaults if not provided.

        Raises:
            ConfigError: Missing stopword/lemmatizer binding or invalid n-gram size
        """
        self.config = config or PipelineConfig()

        if self.config.token_mode is SegmentMode.SENTENCE:
            raise ConfigError("Sentence mode is not a document-term unit; use word or ngram")
        if self.config.token_mode is SegmentMode.NGRAM and self.config.ngram_size < 1:
            raise ConfigError(f"ngram_size must be >= 1, got {self.config.ngram_size}")
        if self.config.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.config.max_workers}")

        self.segmenter = Segmenter()
        self.stopword_filter = StopwordFilter(stopwords)
        self.cleaner = TextCleaner(self.stopword_filter, self.segmenter)
        self.lemmatizer = resolve_lemmatizer(lemmatizer)
        self.processor = ParallelProcessor(max_workers=self.config.max_workers)

    def process_corpus(self, records: Iterable[RawRecord]) -> ProcessedCorpus:
        """
        Process a corpus of raw records

        Args:
            records: Document instances or mappings with id, text, group_label

        Returns:
            ProcessedCorpus ordered by ascending document id; malformed
            records are listed in ``skipped`` and excluded
        """
        documents, skipped = self._validate_records(records)
        logger.info(
            "Processing %d documents (%d skipped, mode=%s)",
            len(documents), len(skipped), self.config.token_mode.value,
        )

        processed = self.processor.map(self.process_document, documents)
        processed.sort(key=lambda doc: document_sort_key(doc.id))

        empty = sum(1 for doc in processed if len(doc) == 0)
        if empty:
            logger.warning("%d documents have no retained tokens", empty)

        return ProcessedCorpus(documents=tuple(processed), skipped=tuple(skipped))

    def process_document(self, document: Document) -> ProcessedDocument:
        """
        Clean, lemmatize and segment one document

        Args:
            document: Validated document

        Returns:
            ProcessedDocument with retained tokens and per-token warnings
        """
        warnings: List[str] = []
        lemmas: List[str] = []

        for token in self.cleaner.clean_tokens(document.text):
            lemma = self._lemmatize(token, document, warnings)
            if lemma is not None:
                lemmas.append(lemma)

        if self.config.token_mode is SegmentMode.NGRAM:
            tokens = ngrams_from_tokens(lemmas, self.config.ngram_size)
        else:
            tokens = lemmas

        if not tokens:
            warnings.append(f"Document {document.id!r}: no tokens retained after filtering")

        return ProcessedDocument(
            id=document.id,
            group_label=document.group_label,
            tokens=tuple(tokens),
            warnings=tuple(warnings),
        )

    def _lemmatize(self, token: str, document: Document, warnings: List[str]) -> Optional[str]:
        """Apply the injected lemmatizer; a failing token is dropped, not fatal."""
        try:
            lemma = self.lemmatizer(token)
        except Exception as e:  # pylint: disable=broad-except
            message = f"Document {document.id!r}: lemmatizer failed on {token!r} ({e})"
            logger.warning(message)
            warnings.append(message)
            return None

        if not isinstance(lemma, str) or not lemma.strip():
            message = f"Document {document.id!r}: lemmatizer returned no lemma for {token!r}"
            logger.warning(message)
            warnings.append(message)
            return None

        lemma = lemma.strip()
        if WHITESPACE_PATTERN.search(lemma):
            message = f"Document {document.id!r}: lemmatizer returned multi-word lemma {lemma!r} for {token!r}"
            logger.warning(message)
            warnings.append(message)
            return None

        return lemma

    def _validate_records(
        self,
        records: Iterable[RawRecord],
    ) -> Tuple[List[Document], List[str]]:
        """Split records into valid documents and InputError messages."""
        documents: List[Document] = []
        skipped: List[str] = []
        seen_ids: Set[Any] = set()

        for position, record in enumerate(records):
            try:
                document = self._to_document(record, position)
                if document.id in seen_ids:
                    raise InputError(
                        f"Duplicate document id {document.id!r} at position {position}",
                        document_id=document.id,
                    )
            except InputError as e:
                logger.warning("Skipping record: %s", e)
                skipped.append(str(e))
                continue

            seen_ids.add(document.id)
            documents.append(document)

        return documents, skipped

    @staticmethod
    def _to_document(record: RawRecord, position: int) -> Document:
        """Coerce a raw record into a Document or raise InputError."""
        if isinstance(record, Document):
            return record
        if not isinstance(record, Mapping):
            raise InputError(
                f"Record at position {position} is a {type(record).__name__}, expected a mapping"
            )

        document_id = record.get("id")
        if document_id is None:
            raise InputError(f"Record at position {position} has no id")
        if not isinstance(record.get("text"), str):
            raise InputError(
                f"Record {document_id!r} has missing or non-string text",
                document_id=document_id,
            )

        try:
            return Document(
                id=document_id,
                text=record["text"],
                group_label=record.get("group_label"),
            )
        except ValidationError as e:
            raise InputError(
                f"Record {document_id!r} is malformed: {e.errors()[0]['msg']}",
                document_id=document_id,
            ) from e


def process_corpus(
    records: Iterable[RawRecord],
    stopwords: Iterable[str],
    lemmatizer: Lemmatizer,
    token_mode: Union[SegmentMode, str] = SegmentMode.WORD,
    ngram_size: int = DEFAULT_NGRAM_SIZE,
    max_workers: int = 1,
) -> ProcessedCorpus:
    """
    Convenience function to preprocess a corpus

    Example:
        >>> from clinical_topics.preprocessing import process_corpus, identity_lemmatizer
        >>> corpus = process_corpus(records, stopwords=set(), lemmatizer=identity_lemmatizer)
        >>> print(f"{len(corpus)} documents")
    """
    config = PipelineConfig(
        token_mode=SegmentMode(token_mode),
        ngram_size=ngram_size,
        max_workers=max_workers,
    )
    return CorpusPipeline(stopwords, lemmatizer, config).process_corpus(records)
