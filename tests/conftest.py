"""
Global test fixtures for docmap.

This module provides:
- A fresh DocumentMapper per test
- Process-wide state reset around every test
"""

import pytest

import docmap.infrastructure.state as state
from docmap.services.discovery import AttributeDiscovery
from docmap.services.mapper import DocumentMapper


@pytest.fixture(autouse=True)
def reset_state():
    """Forget the process-wide mapper before and after each test."""
    state.reset()
    yield
    state.reset()


@pytest.fixture
def mapper() -> DocumentMapper:
    """Mapper with the default (mongoengine-aware) discovery."""
    return DocumentMapper()


@pytest.fixture
def plain_mapper() -> DocumentMapper:
    """Mapper that only looks at annotations and properties."""
    return DocumentMapper(discovery=AttributeDiscovery())
