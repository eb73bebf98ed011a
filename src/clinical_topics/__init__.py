"""
Clinical Topics

Latent topic discovery for free-text clinical documents:
text normalization, document-term aggregation, group TF-IDF and
collapsed-Gibbs LDA.

Quick Start:
    >>> from clinical_topics.preprocessing import process_corpus, identity_lemmatizer
    >>> from clinical_topics.features.document_term import DocumentTermMatrix
    >>> from clinical_topics.features.topic_modeling import LDATrainer, TopicModelAnalyzer
    >>> corpus = process_corpus(records, stopwords={"the"}, lemmatizer=identity_lemmatizer)
    >>> model = LDATrainer(num_topics=5).train(DocumentTermMatrix.from_corpus(corpus))
    >>> TopicModelAnalyzer(model).describe_topic(0)
"""

from clinical_topics.exceptions import (
    ClinicalTopicsError,
    ConfigError,
    VocabularyError,
    InputError,
    NumericError,
    ConvergenceWarning,
)

__version__ = "0.1.0"

__all__ = [
    "ClinicalTopicsError",
    "ConfigError",
    "VocabularyError",
    "InputError",
    "NumericError",
    "ConvergenceWarning",
]
