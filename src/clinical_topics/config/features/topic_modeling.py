"""Topic modeling configuration."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinical_topics.config._loader import load_yaml_section


def _get_config() -> dict:
    return load_yaml_section("features/topic_modeling.yaml", "topic_modeling")


class TopicModelingModelConfig(BaseSettings):
    """LDA sampler settings."""
    model_config = SettingsConfigDict(
        env_prefix='TOPIC_MODELING_MODEL_',
        case_sensitive=False
    )

    num_topics: int = Field(
        default_factory=lambda: _get_config().get('model', {}).get('num_topics', 10)
    )
    alpha: float = Field(
        default_factory=lambda: _get_config().get('model', {}).get('alpha', 0.1)
    )
    eta: float = Field(
        default_factory=lambda: _get_config().get('model', {}).get('eta', 0.01)
    )
    iterations: int = Field(
        default_factory=lambda: _get_config().get('model', {}).get('iterations', 500)
    )
    random_state: int = Field(
        default_factory=lambda: _get_config().get('model', {}).get('random_state', 42)
    )
    num_workers: int = Field(
        default_factory=lambda: _get_config().get('model', {}).get('num_workers', 1)
    )


class TopicModelingEvaluationConfig(BaseSettings):
    """Training diagnostics settings."""
    model_config = SettingsConfigDict(
        env_prefix='TOPIC_MODELING_EVAL_',
        case_sensitive=False
    )

    compute_log_likelihood: bool = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('compute_log_likelihood', False)
    )
    convergence_window: int = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('convergence_window', 10)
    )
    convergence_tolerance: float = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('convergence_tolerance', 1e-3)
    )
    compute_coherence: bool = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('compute_coherence', False)
    )
    coherence_top_n: int = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('coherence_top_n', 10)
    )
    num_topic_words: int = Field(
        default_factory=lambda: _get_config().get('evaluation', {}).get('num_topic_words', 20)
    )


class TopicModelingPersistenceConfig(BaseSettings):
    """Model persistence settings."""
    model_config = SettingsConfigDict(
        env_prefix='TOPIC_MODELING_PERSIST_',
        case_sensitive=False
    )

    default_model_path: str = Field(
        default_factory=lambda: _get_config().get('persistence', {}).get('default_model_path', 'models/lda_clinical')
    )
    checkpoint_path: Optional[str] = Field(
        default_factory=lambda: _get_config().get('persistence', {}).get('checkpoint_path')
    )


class TopicModelingConfig(BaseSettings):
    """
    Topic modeling configuration.
    Loads from configs/features/topic_modeling.yaml with environment variable overrides.
    """
    model_config = SettingsConfigDict(
        env_prefix='TOPIC_MODELING_',
        env_nested_delimiter='__',
        case_sensitive=False
    )

    model: TopicModelingModelConfig = Field(
        default_factory=TopicModelingModelConfig
    )
    evaluation: TopicModelingEvaluationConfig = Field(
        default_factory=TopicModelingEvaluationConfig
    )
    persistence: TopicModelingPersistenceConfig = Field(
        default_factory=TopicModelingPersistenceConfig
    )
