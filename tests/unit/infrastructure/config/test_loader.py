# tests/unit/infrastructure/config/test_loader.py

"""Test configuration loading and management"""

# Standard library imports
from json import dumps
from os import unlink
from tempfile import NamedTemporaryFile

# Third party imports
from pydantic import ValidationError
import pytest

# Local imports
from biblio_export.infrastructure.config import AppConfig
from biblio_export.infrastructure.config import ConfigLoader
from biblio_export.infrastructure.config import RetryConfig
from biblio_export.infrastructure.config import get_config
from biblio_export.infrastructure.config import reset_config


def _write_config(content: str) -> str:
    with NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
        f.write(content)
        return f.name


class TestConfigLoader:
    """Test the ConfigLoader class"""

    def test_default_config_values(self, config):
        """Test that default configuration values are loaded correctly"""
        assert config.client.page_size == 100
        assert config.client.max_connections == 8
        assert config.client.retry.max_attempts == 4
        assert config.client.retry.base_delay == 0.5
        assert config.processing.max_workers is None
        assert config.processing.request_timeout == 300.0
        assert config.processing.default_combined is True
        assert config.server.port == 8000

    def test_custom_config_file(self):
        """Test loading from custom JSON configuration file"""
        custom_config = {
            "client": {"page_size": 25, "retry": {"max_attempts": 2}},
            "processing": {"max_workers": 3, "default_combined": False},
            "onix": {"sender_name": "Test Press"},
        }
        config_path = _write_config(dumps(custom_config))

        try:
            config = ConfigLoader(config_path)

            assert config.client.page_size == 25
            assert config.client.retry.max_attempts == 2
            assert config.processing.max_workers == 3
            assert config.processing.default_combined is False
            assert config.onix.sender_name == "Test Press"

            # Unspecified values fall back to defaults
            assert config.client.retry.base_delay == 0.5
            assert config.crossref.depositor_name == "Biblio Export"
        finally:
            unlink(config_path)

    def test_invalid_json_uses_defaults(self):
        """Test that malformed JSON falls back to defaults"""
        config_path = _write_config("{not json")
        try:
            config = ConfigLoader(config_path)
            assert config.client.page_size == 100
        finally:
            unlink(config_path)

    def test_invalid_values_use_defaults(self):
        """Test that values failing validation fall back to defaults"""
        config_path = _write_config(dumps({"client": {"graphql_url": "ftp://example.org"}}))
        try:
            config = ConfigLoader(config_path)
            assert config.client.graphql_url == "https://api.thoth.pub/graphql"
        finally:
            unlink(config_path)

    def test_missing_file_uses_defaults(self, temp_test_dir):
        config = ConfigLoader(f"{temp_test_dir}/absent.json")
        assert config.app_config == AppConfig()

    def test_config_dict(self, config):
        data = config.config
        assert set(data) == {"client", "processing", "onix", "crossref", "logging", "server"}


class TestConfigModels:
    def test_retry_delays_must_be_ordered(self):
        with pytest.raises(ValidationError):
            RetryConfig(base_delay=5.0, max_delay=1.0)

    def test_worker_limit(self):
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"processing": {"max_workers": 500}})


class TestGetConfig:
    def test_default_instance_is_cached(self):
        assert get_config() is get_config()

    def test_reset_drops_default(self):
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_explicit_path_is_not_cached(self):
        config_path = _write_config(dumps({"server": {"port": 9001}}))
        try:
            config = get_config(config_path)
            assert config.server.port == 9001
            assert get_config() is not config
        finally:
            unlink(config_path)
