"""
TF-IDF Schemas

Pydantic models for group-level TF-IDF results.
"""

from typing import Any

from pydantic import BaseModel, Field


class TermWeight(BaseModel):
    """
    TF-IDF weight of one term within one group.

    Attributes:
        term: Vocabulary term (word or n-gram)
        count: Occurrences of the term in the group
        tf: count / total terms in the group
        idf: log(number of groups / groups containing the term), unsmoothed
        tf_idf: tf * idf
    """
    term: str
    count: int = Field(..., ge=0)
    tf: float = Field(..., ge=0.0, le=1.0)
    idf: float = Field(..., ge=0.0)
    tf_idf: float = Field(..., ge=0.0)


class GroupTermRecord(TermWeight):
    """Flat TF-IDF row with its group label, for tabular reporting."""
    group: Any
