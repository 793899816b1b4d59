# biblio_export/infrastructure/config/_loader.py

"""Main configuration loader using Pydantic models"""

# Standard library imports
from logging import getLogger

# Local imports
from biblio_export.core.types.json import JSONDict
from biblio_export.infrastructure.config._models import AppConfig
from biblio_export.infrastructure.config._models import ClientConfig
from biblio_export.infrastructure.config._models import CrossrefConfig
from biblio_export.infrastructure.config._models import LoggingConfig
from biblio_export.infrastructure.config._models import OnixConfig
from biblio_export.infrastructure.config._models import ProcessingConfig
from biblio_export.infrastructure.config._models import ServerConfig

logger = getLogger(__name__)


class ConfigLoader:
    """Configuration loader exposing each validated section"""

    def __init__(self, config_path: str | None = None, app_config: AppConfig | None = None):
        """Initialize configuration loader

        Args:
            config_path: Path to JSON configuration file, None for auto-detection
            app_config: Already built configuration, skips file loading
        """
        self.config_path = config_path
        self._app_config = app_config if app_config is not None else AppConfig.load(config_path)

    @property
    def app_config(self) -> AppConfig:
        return self._app_config

    @property
    def config(self) -> JSONDict:
        """Full config as dict"""
        return self._app_config.model_dump()

    @property
    def client(self) -> ClientConfig:
        """Metadata client configuration"""
        return self._app_config.client

    @property
    def processing(self) -> ProcessingConfig:
        """Processing configuration"""
        return self._app_config.processing

    @property
    def onix(self) -> OnixConfig:
        return self._app_config.onix

    @property
    def crossref(self) -> CrossrefConfig:
        return self._app_config.crossref

    @property
    def logging(self) -> LoggingConfig:
        """Logging configuration"""
        return self._app_config.logging

    @property
    def server(self) -> ServerConfig:
        return self._app_config.server


# Global default instance
_default_config: ConfigLoader | None = None


def get_config(config_path: str | None = None) -> ConfigLoader:
    """Get configuration loader instance

    Args:
        config_path: Path to configuration file, None for default

    Returns:
        ConfigLoader instance
    """
    global _default_config

    if config_path:
        return ConfigLoader(config_path)

    if _default_config is None:
        _default_config = ConfigLoader(None)

    return _default_config


def reset_config() -> None:
    """Drop the process default so the next get_config() reloads it"""
    global _default_config
    _default_config = None
