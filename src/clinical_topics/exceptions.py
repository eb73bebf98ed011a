"""
Error taxonomy for the clinical topic modeling package.

- ConfigError: invalid hyperparameters or missing bindings, raised eagerly
- VocabularyError: corpus yields no usable terms / documents
- InputError: malformed document record (skipped, never fatal to the corpus)
- NumericError: sampler produced an invalid probability (fatal)
- ConvergenceWarning: log-likelihood still moving at the final sweep
"""

from typing import Any, Hashable, Optional


class ClinicalTopicsError(Exception):
    """Base class for all package errors."""


class ConfigError(ClinicalTopicsError, ValueError):
    """Invalid configuration, raised before any processing starts."""


class VocabularyError(ClinicalTopicsError, ValueError):
    """Corpus has no documents or no terms left after filtering."""


class InputError(ClinicalTopicsError, ValueError):
    """A single document record is malformed."""

    def __init__(self, message: str, document_id: Optional[Hashable] = None):
        super().__init__(message)
        self.document_id = document_id


class NumericError(ClinicalTopicsError, ArithmeticError):
    """
    Sampling produced a NaN, negative or non-finite probability.

    Attributes:
        checkpoint: Sampler state at the end of the last completed sweep
    """

    def __init__(self, message: str, checkpoint: Any = None):
        super().__init__(message)
        self.checkpoint = checkpoint


class ConvergenceWarning(UserWarning):
    """Log-likelihood had not stabilized by the final sweep."""
