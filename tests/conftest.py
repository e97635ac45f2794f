"""Pytest configuration and fixtures for author_store tests."""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from author_store.application import build_schema
from author_store.domain.services import IndexedStore
from author_store.domain.value_objects import DBSchema
from author_store.infrastructure.config import Config, StoreConfig
from author_store.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def schema() -> DBSchema:
    """Provide the service schema."""
    return build_schema()


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def store(schema: DBSchema, metrics_registry: MetricsRegistry) -> IndexedStore:
    """Provide an empty store over the service schema."""
    return IndexedStore(schema, metrics=metrics_registry)


@pytest.fixture
def test_config() -> Config:
    """Provide a test configuration with a short write-lock deadline."""
    return Config(store=StoreConfig(write_lock_timeout_seconds=0.5))


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "slow: Slow tests")
