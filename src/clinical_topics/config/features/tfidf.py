"""TF-IDF configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_topics.config._loader import load_yaml_section


def _get_config() -> dict:
    return load_yaml_section("features/tfidf.yaml", "tfidf")


class TfidfConfig(BaseSettings):
    """Group-level TF-IDF settings."""
    model_config = SettingsConfigDict(
        env_prefix='TFIDF_',
        case_sensitive=False
    )

    top_n: int = Field(
        default_factory=lambda: _get_config().get('top_n', 10)
    )
