"""
Clinical Topics Configuration Package.

This module uses Pydantic Settings to:
1. Define the schema for all configuration
2. Load defaults from configs/config.yaml and configs/features/*.yaml
3. Automatically override with environment variables from .env

Usage:
    from clinical_topics.config import settings

    # Access preprocessing settings
    mode = settings.preprocessing.token_mode

    # Access LDA settings
    num_topics = settings.topic_modeling.model.num_topics
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_topics.config.preprocessing import PreprocessingConfig
from clinical_topics.config.features import (
    TopicModelingConfig,
    TfidfConfig,
)


class Settings(BaseSettings):
    """
    Main settings class that combines all configuration sections.

    Usage:
        from clinical_topics.config import settings

        settings.preprocessing.ngram_size
        settings.topic_modeling.model.alpha
        settings.tfidf.top_n
    """
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    topic_modeling: TopicModelingConfig = Field(default_factory=TopicModelingConfig)
    tfidf: TfidfConfig = Field(default_factory=TfidfConfig)


# ===========================
# Global Settings Instance
# ===========================

settings = Settings()


__all__ = [
    "settings",
    "Settings",
    "PreprocessingConfig",
    "TopicModelingConfig",
    "TfidfConfig",
]
