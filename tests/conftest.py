# tests/conftest.py

"""Pytest configuration and fixtures for test suite"""

# Standard library imports
from datetime import UTC
from datetime import datetime
from logging import Logger
from logging import getLogger
from shutil import rmtree
from tempfile import mkdtemp

# Third party imports
import pytest

# Local imports
from biblio_export.adapters.specifications import build_registry
from biblio_export.infrastructure.config import AppConfig
from biblio_export.infrastructure.config import ConfigLoader
from biblio_export.infrastructure.config import reset_config

FIXED_NOW = datetime(2024, 5, 1, 12, 30, 0, tzinfo=UTC)


# Custom markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True, scope="function")
def basic_isolation():
    """Minimal isolation for most tests - reset logging and the config default"""
    root_logger = getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    # Reset logging level
    root_logger.setLevel(30)  # WARNING level

    # Clear all logger instances
    Logger.manager.loggerDict.clear()

    reset_config()
    yield
    reset_config()


@pytest.fixture
def fixed_clock():
    """Clock returning the same instant on every call"""
    return lambda: FIXED_NOW


@pytest.fixture
def config():
    """Defaults only, independent of any config.json in the working directory"""
    return ConfigLoader(app_config=AppConfig())


@pytest.fixture
def registry(config, fixed_clock):
    """Registry of all built-in formats with deterministic header timestamps"""
    return build_registry(config, clock=fixed_clock)


@pytest.fixture
def temp_test_dir():
    """Provide a temporary directory for tests that need file operations"""
    temp_dir = mkdtemp()
    yield temp_dir
    rmtree(temp_dir, ignore_errors=True)
