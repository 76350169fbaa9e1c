"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Keep config and logging singletons from leaking between tests."""
    from src.config.settings import reset_settings
    from src.matching.config import reset_matching_config
    from src.utils.logging import reset_logging

    yield
    reset_settings()
    reset_matching_config()
    reset_logging()


@pytest.fixture
def example_dataset_path() -> Path:
    """Path to the example marketplace dataset."""
    return REPO_ROOT / "data" / "marketplace.example.yaml"


@pytest.fixture
def matching_config():
    """Default matching config isolated from the environment."""
    from src.matching.config import MatchingConfig

    return MatchingConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def categories():
    """A small category tree keyed by id.

    tech
      frontend
        react
      backend
    health
      nursing
    """
    from src.categories.models import Category

    records = [
        Category(id="tech", name="Technology", path=["tech"]),
        Category(
            id="frontend",
            name="Frontend Development",
            path=["tech", "frontend"],
            parent_id="tech",
        ),
        Category(
            id="react",
            name="React Development",
            path=["tech", "frontend", "react"],
            parent_id="frontend",
        ),
        Category(
            id="backend",
            name="Backend Development",
            path=["tech", "backend"],
            parent_id="tech",
        ),
        Category(id="health", name="Healthcare", path=["health"]),
        Category(
            id="nursing",
            name="Nursing",
            path=["health", "nursing"],
            parent_id="health",
        ),
    ]
    return {category.id: category for category in records}
