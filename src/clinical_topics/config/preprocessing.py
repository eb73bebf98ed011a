"""Text preprocessing configuration."""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_topics.config._loader import load_yaml_section


def _get_config() -> dict:
    return load_yaml_section("config.yaml").get("preprocessing", {})


class PreprocessingConfig(BaseSettings):
    """Text preprocessing configuration settings."""
    model_config = SettingsConfigDict(
        env_prefix='PREPROCESSING_',
        case_sensitive=False
    )

    token_mode: Literal["word", "ngram"] = Field(
        default_factory=lambda: _get_config().get('token_mode', 'word')
    )
    ngram_size: int = Field(
        default_factory=lambda: _get_config().get('ngram_size', 2)
    )
    lowercase_sentences: bool = Field(
        default_factory=lambda: _get_config().get('lowercase_sentences', True)
    )
    use_nltk_stopwords: bool = Field(
        default_factory=lambda: _get_config().get('use_nltk_stopwords', True)
    )
    use_clinical_stopwords: bool = Field(
        default_factory=lambda: _get_config().get('use_clinical_stopwords', True)
    )
    custom_stopwords: List[str] = Field(
        default_factory=lambda: _get_config().get('custom_stopwords', [])
    )
    max_workers: int = Field(
        default_factory=lambda: _get_config().get('max_workers', 4)
    )
