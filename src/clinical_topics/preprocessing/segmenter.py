"""
Segmenter module for clinical transcriptions
Splits text into normalized words, n-grams or sentences
"""

from typing import Iterator, List, Optional, Sequence, Union

from clinical_topics.config import settings
from clinical_topics.exceptions import ConfigError
from .constants import (
    NGRAM_SEPARATOR,
    NON_ALPHANUMERIC_PATTERN,
    SENTENCE_BOUNDARY_PATTERN,
    WHITESPACE_PATTERN,
    SegmentMode,
)


def normalize_token(candidate: str) -> Optional[str]:
    """
    Normalize one whitespace-delimited candidate token.

    Lower-cases, strips every non-alphanumeric character and rejects tokens
    that contain any numeric character (superscripts included) or
    are reduced to the empty string.

    Returns:
        The normalized token, or None if it is discarded
    """
    token = NON_ALPHANUMERIC_PATTERN.sub('', candidate.lower())
    if not token or any(ch.isnumeric() for ch in token):
        return None
    return token


class WordTokens:
    """
    Lazy, restartable sequence of normalized word tokens.

    Every call to iter() re-scans the source text, so the sequence can be
    consumed any number of times and always yields the same tokens.
    """

    __slots__ = ("_text",)

    def __init__(self, text: str):
        self._text = text or ""

    def __iter__(self) -> Iterator[str]:
        for candidate in WHITESPACE_PATTERN.split(self._text):
            token = normalize_token(candidate)
            if token is not None:
                yield token

    def __repr__(self) -> str:
        preview = self._text[:40]
        return f"WordTokens({preview!r})"


class Segmenter:
    """Segments text into words, n-grams or sentences"""

    def __init__(self, lowercase_sentences: Optional[bool] = None):
        """
        Initialize the segmenter

        Args:
            lowercase_sentences: Whether sentence mode lower-cases its output
                (default: settings.preprocessing.lowercase_sentences)
        """
        if lowercase_sentences is None:
            lowercase_sentences = settings.preprocessing.lowercase_sentences  # pylint: disable=no-member
        self.lowercase_sentences = lowercase_sentences

    def segment(
        self,
        text: str,
        mode: Union[SegmentMode, str] = SegmentMode.WORD,
        n: Optional[int] = None,
    ) -> Sequence[str] | WordTokens:
        """
        Split text into ordered tokens

        Args:
            text: Input text (cleaned text for n-gram mode)
            mode: "word", "ngram" or "sentence"
            n: Window size, required for n-gram mode

        Returns:
            WordTokens for word mode, list of strings otherwise

        Raises:
            ConfigError: Unknown mode or invalid n
        """
        try:
            mode = SegmentMode(mode)
        except ValueError as e:
            raise ConfigError(f"Unknown segmentation mode: {mode!r}") from e

        if mode is SegmentMode.WORD:
            return self.words(text)
        if mode is SegmentMode.NGRAM:
            if n is None:
                raise ConfigError("n-gram segmentation requires n")
            return self.ngrams(text, n)
        return self.sentences(text)

    def words(self, text: str) -> WordTokens:
        """Normalized word tokens (lazy, restartable)."""
        return WordTokens(text)

    def ngrams(self, text: str, n: int) -> List[str]:
        """
        Sliding windows of n consecutive word tokens joined by one space.

        Produces max(0, word_count - n + 1) n-grams.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n < 1:
            raise ConfigError(f"n-gram size must be a positive integer, got {n!r}")
        return ngrams_from_tokens(list(self.words(text)), n)

    def sentences(self, text: str) -> List[str]:
        """
        Heuristic sentence split on '.', '!' or '?' followed by whitespace
        and a non lower-case character. No stopword or digit filtering.
        """
        if not text or not text.strip():
            return []

        sentences = []
        for part in SENTENCE_BOUNDARY_PATTERN.split(text.strip()):
            part = WHITESPACE_PATTERN.sub(' ', part).strip()
            if not part:
                continue
            sentences.append(part.lower() if self.lowercase_sentences else part)
        return sentences


def ngrams_from_tokens(tokens: Sequence[str], n: int) -> List[str]:
    """Join every window of n consecutive tokens with a single space."""
    if n < 1:
        raise ConfigError(f"n-gram size must be a positive integer, got {n!r}")
    return [
        NGRAM_SEPARATOR.join(tokens[i:i + n])
        for i in range(len(tokens) - n + 1)
    ]


def segment(
    text: str,
    mode: Union[SegmentMode, str] = SegmentMode.WORD,
    n: Optional[int] = None,
    lowercase_sentences: Optional[bool] = None,
) -> Sequence[str] | WordTokens:
    """
    Convenience function to segment a single text

    Example:
        >>> list(segment("The Patient's BP was 120/80, stable."))
        ['the', 'patients', 'bp', 'was', 'stable']
        >>> segment("chest pain shortness breath", "ngram", n=2)
        ['chest pain', 'pain shortness', 'shortness breath']
    """
    return Segmenter(lowercase_sentences=lowercase_sentences).segment(text, mode, n)
