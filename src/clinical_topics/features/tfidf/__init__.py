"""
TF-IDF Module

Highlights terms that distinguish one document group (e.g. a medical
specialty) from the others, using unsmoothed inverse document frequency
over groups.
"""

from .calculator import TfidfCalculator, TfidfTable
from .schemas import TermWeight, GroupTermRecord

__all__ = [
    "TfidfCalculator",
    "TfidfTable",
    "TermWeight",
    "GroupTermRecord",
]
