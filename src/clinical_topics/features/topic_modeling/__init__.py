"""
Topic Modeling Module

This package provides collapsed-Gibbs LDA topic modeling for clinical
transcriptions. It discovers latent topics and each document's mixture
over them.

Key Components:
- LDATrainer: Model training, persistence
- CollapsedGibbsSampler: Exact sequential sampler (determinism reference)
- ApproximateParallelSampler: Sharded sampler for throughput
- TopicModelAnalyzer: Top terms, dominant topics, group summaries
- TopicModel: Immutable fitted model (beta, gamma)

Workflow:
1. Train an LDA model on a document-term matrix:
    ```python
    from clinical_topics.features.topic_modeling import LDATrainer

    trainer = LDATrainer(num_topics=8, iterations=500)
    model = trainer.train(dtm)
    trainer.print_topics(num_words=10)
    trainer.save("models/lda_clinical")
    ```

2. Query the fitted model:
    ```python
    from clinical_topics.features.topic_modeling import TopicModelAnalyzer

    analyzer = TopicModelAnalyzer(model)
    analyzer.top_terms(0, n=10)          # [TopicTerm(term=..., weight=...), ...]
    analyzer.dominant_topic(doc_id)      # int
    analyzer.group_topic_means(labels)   # {"Surgery": [0.6, 0.1, ...], ...}
    ```
"""

from .analyzer import TopicModelAnalyzer, top_terms, dominant_topic, document_topics
from .gibbs import CollapsedGibbsSampler, ApproximateParallelSampler, SamplerCheckpoint
from .lda_trainer import LDATrainer
from .schemas import (
    TopicModel,
    ModelArtifact,
    ArtifactHeader,
    VocabularyEntry,
    LDAModelInfo,
    TopicTerm,
    DocumentTopicAssignment,
)
from .constants import (
    TOPIC_MODELING_MODULE_VERSION,
    DEFAULT_NUM_TOPICS,
    DEFAULT_ALPHA,
    DEFAULT_ETA,
    DEFAULT_ITERATIONS,
)

__all__ = [
    # Main classes
    "LDATrainer",
    "TopicModelAnalyzer",
    "CollapsedGibbsSampler",
    "ApproximateParallelSampler",
    "SamplerCheckpoint",
    # Query functions
    "top_terms",
    "dominant_topic",
    "document_topics",
    # Schemas
    "TopicModel",
    "ModelArtifact",
    "ArtifactHeader",
    "VocabularyEntry",
    "LDAModelInfo",
    "TopicTerm",
    "DocumentTopicAssignment",
    # Constants
    "TOPIC_MODELING_MODULE_VERSION",
    "DEFAULT_NUM_TOPICS",
    "DEFAULT_ALPHA",
    "DEFAULT_ETA",
    "DEFAULT_ITERATIONS",
]

__version__ = TOPIC_MODELING_MODULE_VERSION
