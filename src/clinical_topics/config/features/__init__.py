"""Feature extraction configuration modules."""

from clinical_topics.config.features.topic_modeling import TopicModelingConfig
from clinical_topics.config.features.tfidf import TfidfConfig

__all__ = [
    "TopicModelingConfig",
    "TfidfConfig",
]
