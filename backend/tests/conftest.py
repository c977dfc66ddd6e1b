"""Pytest configuration and shared fixtures."""

import pytest

from app.feed.registry import TokenRegistry


@pytest.fixture
def registry() -> TokenRegistry:
    """The default token table."""
    return TokenRegistry()
