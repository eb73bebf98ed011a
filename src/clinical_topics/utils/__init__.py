"""Shared utilities for parallel processing and checkpointing."""

from clinical_topics.utils.checkpoint import CheckpointManager
from clinical_topics.utils.parallel import ParallelProcessor

__all__ = [
    'CheckpointManager',
    'ParallelProcessor',
]
