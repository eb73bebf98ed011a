"""
Cleaning module for clinical transcription text
Stopword filtering, word-level cleaning and lemmatizer adapters
"""

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Set

import nltk
from nltk.corpus import stopwords as nltk_stopwords
from nltk.stem import WordNetLemmatizer

from clinical_topics.config import settings
from clinical_topics.exceptions import ConfigError
from .constants import CLINICAL_STOPWORDS, NGRAM_SEPARATOR
from .segmenter import Segmenter

logger = logging.getLogger(__name__)

Lemmatizer = Callable[[str], str]


class StopwordFilter:
    """Removes tokens found in a caller-supplied stopword set"""

    def __init__(self, stopwords: Optional[Iterable[str]]):
        """
        Args:
            stopwords: Stopword strings; case-normalized on construction.
                An empty collection is allowed, None is not.

        Raises:
            ConfigError: If stopwords is None or a bare string
        """
        if stopwords is None:
            raise ConfigError("A stopword set is required (pass an empty set to disable filtering)")
        if isinstance(stopwords, str):
            raise ConfigError("Stopwords must be a collection of strings, not a single string")

        self.stopwords = frozenset(
            word.strip().lower() for word in stopwords if word and word.strip()
        )

    def __contains__(self, token: str) -> bool:
        return token.lower() in self.stopwords

    def __len__(self) -> int:
        return len(self.stopwords)

    def filter(self, tokens: Iterable[str]) -> List[str]:
        """Return tokens minus any token in the stopword set (order preserved)."""
        return [token for token in tokens if token.lower() not in self.stopwords]


class TextCleaner:
    """
    Word-level cleaner producing the canonical cleaned string.

    Order: word-tokenize -> strip non-alphanumerics -> digit filter ->
    stopword filter -> rejoin with single spaces. N-grams are always built
    from this cleaned string, never from raw text.
    """

    def __init__(
        self,
        stopword_filter: StopwordFilter,
        segmenter: Optional[Segmenter] = None,
    ):
        self.stopword_filter = stopword_filter
        self.segmenter = segmenter or Segmenter()

    def clean_tokens(self, text: str) -> List[str]:
        """Normalized, stopword-filtered word tokens of text."""
        if not text:
            return []
        return self.stopword_filter.filter(self.segmenter.words(text))

    def clean_text(self, text: str) -> str:
        """
        Clean text for further segmentation

        Args:
            text: Raw document text

        Returns:
            str: Cleaned text (single-space separated tokens)
        """
        return NGRAM_SEPARATOR.join(self.clean_tokens(text))


# ===========================
# Lemmatizer Adapters
# ===========================

def identity_lemmatizer(token: str) -> str:
    """Lemmatizer that leaves every token unchanged."""
    return token


class DictionaryLemmatizer:
    """
    Lookup-table lemmatizer; tokens missing from the table pass through.

    Usage:
        lemmatize = DictionaryLemmatizer({"running": "run", "knees": "knee"})
        lemmatize("knees")  # "knee"
    """

    def __init__(self, mapping: Mapping[str, str]):
        self.mapping = {key.lower(): value for key, value in mapping.items()}

    def __call__(self, token: str) -> str:
        return self.mapping.get(token, token)


class WordNetLemmatizerAdapter:
    """
    NLTK WordNet lemmatizer as a context-free token -> lemma function.

    General-purpose: clinical abbreviations and specialised vocabulary are
    expected to be under-normalized (e.g. "cabg", "echocardiograms").
    """

    def __init__(self, pos: str = "n"):
        """
        Args:
            pos: WordNet part of speech used for every token ("n", "v", "a", "r")

        Raises:
            ConfigError: If the WordNet corpus is not installed
        """
        try:
            nltk.data.find("corpora/wordnet")
        except LookupError as e:
            raise ConfigError(
                "NLTK WordNet corpus not downloaded. "
                "Run: python -m nltk.downloader wordnet omw-1.4"
            ) from e

        self.pos = pos
        self._lemmatizer = WordNetLemmatizer()

    def __call__(self, token: str) -> str:
        return self._lemmatizer.lemmatize(token, pos=self.pos)


def resolve_lemmatizer(lemmatizer: Optional[Lemmatizer]) -> Lemmatizer:
    """
    Validate a lemmatizer binding.

    Raises:
        ConfigError: If lemmatizer is missing or not callable
    """
    if lemmatizer is None:
        raise ConfigError(
            "A lemmatizer is required (use identity_lemmatizer to disable lemmatization)"
        )
    if not callable(lemmatizer):
        raise ConfigError(f"Lemmatizer must be callable, got {type(lemmatizer).__name__}")
    return lemmatizer


# ===========================
# Stopword Sets
# ===========================

def load_stopwords(
    custom_stopwords: Optional[Iterable[str]] = None,
    include_clinical: Optional[bool] = None,
    include_nltk: Optional[bool] = None,
) -> Set[str]:
    """
    Load stopword list (NLTK English + clinical boilerplate + custom terms).

    Args:
        custom_stopwords: Additional user-provided stopwords
        include_clinical: Add the bundled clinical transcription stopwords
        include_nltk: Add NLTK English stopwords when the corpus is installed

    Arguments left as None default to settings.preprocessing.

    Returns:
        Set of lower-cased stopwords
    """
    # pylint: disable=no-member
    if custom_stopwords is None:
        custom_stopwords = settings.preprocessing.custom_stopwords
    if include_clinical is None:
        include_clinical = settings.preprocessing.use_clinical_stopwords
    if include_nltk is None:
        include_nltk = settings.preprocessing.use_nltk_stopwords
    # pylint: enable=no-member

    stopwords_set: Set[str] = set()

    if include_clinical:
        stopwords_set.update(CLINICAL_STOPWORDS)

    if include_nltk:
        try:
            stopwords_set.update(nltk_stopwords.words('english'))
        except LookupError:
            logger.warning(
                "NLTK stopwords not downloaded. "
                "Run: python -m nltk.downloader stopwords"
            )

    if custom_stopwords:
        stopwords_set.update(custom_stopwords)

    stopwords_set = {word.strip().lower() for word in stopwords_set if word.strip()}
    logger.info(f"Loaded {len(stopwords_set)} stopwords")
    return stopwords_set
