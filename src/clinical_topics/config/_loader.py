"""
Cached YAML configuration loader.

Usage:
    from clinical_topics.config._loader import load_yaml_section

    # Load entire file
    config = load_yaml_section("config.yaml")

    # Load specific section
    topic_modeling = load_yaml_section("features/topic_modeling.yaml", "topic_modeling")
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any
import yaml

CONFIGS_DIR_ENV = "CLINICAL_TOPICS_CONFIGS_DIR"


def _get_configs_dir() -> Path:
    """Get the configs directory path (overridable via CLINICAL_TOPICS_CONFIGS_DIR)."""
    override = os.environ.get(CONFIGS_DIR_ENV)
    if override:
        return Path(override)
    return Path(__file__).parent.parent.parent.parent / "configs"


@lru_cache(maxsize=16)
def load_yaml_section(config_file: str, section: str | None = None) -> dict[str, Any]:
    """
    Load and cache YAML configuration.

    Args:
        config_file: Path relative to configs/ directory
            (e.g., "config.yaml" or "features/tfidf.yaml")
        section: Optional top-level key to extract (e.g., "tfidf")

    Returns:
        Configuration dictionary (empty dict if file not found)

    Note:
        Results are cached. Use clear_config_cache() to reload.
    """
    config_path = _get_configs_dir() / config_file

    if not config_path.exists():
        return {}

    with open(config_path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    return data.get(section, {}) if section else data


def clear_config_cache() -> None:
    """Clear all cached configurations. Useful for testing."""
    load_yaml_section.cache_clear()
