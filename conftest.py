"""Pytest configuration for Paranoia Toolkit."""

import pytest

from paranoia_toolkit.config import ParanoiaConfig, set_config


def pytest_configure(config):
    """Configure pytest with custom settings."""
    config.addinivalue_line("markers", "scopes: mark test as scope stack test")


@pytest.fixture(autouse=True)
def default_config():
    """Give every test a fresh default configuration."""
    config = ParanoiaConfig()
    set_config(config)
    yield config
    set_config(None)
