"""Shared pytest fixtures for autowire tests."""

import pytest

from autowire.container import Container
from autowire.parameters import ParametersExtractor

pytest_plugins = ["autowire.integrations.pytest_plugin.plugin"]


@pytest.fixture()
def container() -> Container:
    """Default container with object caching enabled."""
    return Container()


@pytest.fixture()
def container_no_cache() -> Container:
    """Container that constructs a fresh object for every request."""
    return Container(cache_objects=False)


@pytest.fixture()
def parameters_extractor() -> ParametersExtractor:
    """ParametersExtractor instance."""
    return ParametersExtractor()
