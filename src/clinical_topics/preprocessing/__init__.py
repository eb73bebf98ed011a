"""Preprocessing modules for clinical documents

Pipeline Flow:
    1. Validate  → Document (malformed records skipped with InputError)
    2. Clean     → TextCleaner → cleaned word tokens
    3. Lemmatize → injected lemmatizer → lemmas
    4. Segment   → Segmenter → words or n-grams

Quick Start:
    >>> from clinical_topics.preprocessing import process_corpus, identity_lemmatizer
    >>> corpus = process_corpus(records, stopwords={"the"}, lemmatizer=identity_lemmatizer)
    >>> print(f"Documents: {len(corpus)}")
"""

from .cleaning import (
    StopwordFilter,
    TextCleaner,
    DictionaryLemmatizer,
    WordNetLemmatizerAdapter,
    identity_lemmatizer,
    load_stopwords,
)
from .segmenter import (
    Segmenter,
    WordTokens,
    segment,
    ngrams_from_tokens,
)
from .pipeline import (
    CorpusPipeline,
    PipelineConfig,
    process_corpus,
)
from .models import (
    Document,
    Token,
    ProcessedDocument,
    ProcessedCorpus,
)
from .constants import SegmentMode, CLINICAL_STOPWORDS

__all__ = [
    # Cleaner
    'StopwordFilter',
    'TextCleaner',
    'DictionaryLemmatizer',
    'WordNetLemmatizerAdapter',
    'identity_lemmatizer',
    'load_stopwords',
    # Segmenter
    'Segmenter',
    'WordTokens',
    'segment',
    'ngrams_from_tokens',
    # Pipeline
    'CorpusPipeline',
    'PipelineConfig',
    'process_corpus',
    # Models
    'Document',
    'Token',
    'ProcessedDocument',
    'ProcessedCorpus',
    # Constants
    'SegmentMode',
    'CLINICAL_STOPWORDS',
]
