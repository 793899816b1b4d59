# biblio_export/infrastructure/config/__init__.py

"""Configuration infrastructure for the export engine.

This module manages configuration loading, validation, and models.
"""

# Local imports
from biblio_export.infrastructure.config._loader import ConfigLoader
from biblio_export.infrastructure.config._loader import get_config
from biblio_export.infrastructure.config._loader import reset_config
from biblio_export.infrastructure.config._models import AppConfig
from biblio_export.infrastructure.config._models import ClientConfig
from biblio_export.infrastructure.config._models import CrossrefConfig
from biblio_export.infrastructure.config._models import OnixConfig
from biblio_export.infrastructure.config._models import ProcessingConfig
from biblio_export.infrastructure.config._models import RetryConfig

__all__ = [
    "AppConfig",
    "ClientConfig",
    "ConfigLoader",
    "CrossrefConfig",
    "OnixConfig",
    "ProcessingConfig",
    "RetryConfig",
    "get_config",
    "reset_config",
]
