"""
Constants for Clinical Text Preprocessing

This module contains the constants used by the preprocessing modules:
segmentation modes, token/sentence regex patterns and the bundled
clinical-transcription stopword list.
"""

import re
from enum import Enum
from typing import List


# ===========================
# Segmentation Modes
# ===========================

class SegmentMode(str, Enum):
    """
    Units a text can be segmented into.

    Usage:
        >>> from clinical_topics.preprocessing.constants import SegmentMode
        >>> SegmentMode("ngram") is SegmentMode.NGRAM
        True
    """

    WORD = "word"
    NGRAM = "ngram"
    SENTENCE = "sentence"


# ===========================
# Token Patterns
# ===========================

# Every character that is not a letter or digit (underscore included)
NON_ALPHANUMERIC_PATTERN = re.compile(r'[\W_]+', re.UNICODE)

WHITESPACE_PATTERN = re.compile(r'\s+')

# Sentence boundary: terminal punctuation, whitespace, then anything that is
# not a lower-case letter (capital, digit, quote, bracket)
SENTENCE_BOUNDARY_PATTERN = re.compile(r'(?<=[.!?])\s+(?=[^a-z\s])')

NGRAM_SEPARATOR = " "


# ===========================
# Clinical Transcription Stopwords
# ===========================
# Boilerplate that appears in almost every transcription regardless of
# specialty (section headers, dictation phrases). Added on top of the
# standard English stopwords.
CLINICAL_STOPWORDS: List[str] = [
    # Section headers
    "history", "present", "illness", "chief", "complaint", "assessment",
    "plan", "impression", "diagnosis", "diagnoses", "preoperative",
    "postoperative", "procedure", "findings", "indications", "description",
    "exam", "examination", "review", "systems", "subjective", "objective",
    # Dictation phrases
    "patient", "patients", "pt", "noted", "note", "also", "well", "will",
    "today", "mr", "mrs", "ms", "dr", "year", "years", "old", "yearold",
    "left", "right", "normal", "within", "limits", "without",
]


# ===========================
# Pipeline Defaults
# ===========================

DEFAULT_NGRAM_SIZE = 2
"""Default window size for n-gram segmentation (bigrams)"""
