# biblio_export/infrastructure/logging/__init__.py

"""Logging infrastructure for the export engine.

This module provides centralized logging configuration and setup.
"""

# Local imports
from biblio_export.infrastructure.logging._progress import ProgressBarManager
from biblio_export.infrastructure.logging._setup import get_default_log_path
from biblio_export.infrastructure.logging._setup import log_export_summary
from biblio_export.infrastructure.logging._setup import set_up_logging as setup_logging

__all__ = ["ProgressBarManager", "get_default_log_path", "log_export_summary", "setup_logging"]
