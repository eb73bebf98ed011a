"""
Shared pytest fixtures for the Clinical Topics test suite.

This module provides common fixtures used across test modules:
- Project / configs paths
- Config cache isolation

Usage:
    Fixtures are automatically discovered by pytest.
    Import them directly in test files - no explicit import needed.
"""

import pytest
from pathlib import Path
import sys

# Ensure the package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from clinical_topics.config._loader import clear_config_cache


# ===========================
# Path Fixtures
# ===========================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def configs_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


# ===========================
# Config Fixtures
# ===========================

@pytest.fixture
def isolated_config_cache():
    """Clear cached YAML before and after a test that changes config sources."""
    clear_config_cache()
    yield
    clear_config_cache()
