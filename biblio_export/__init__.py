# biblio_export/__init__.py

"""Bibliographic Export Engine

Exports work metadata from a GraphQL metadata repository as ONIX, MARC 21,
MARCXML, Crossref deposits, citation formats and tabular catalogues.
"""

# Local imports
# High-level API
from biblio_export.adapters.api import get_app
from biblio_export.application.models.export_results import BatchExportResult
from biblio_export.application.models.export_results import ExportDocument
from biblio_export.application.models.export_results import Manifest
from biblio_export.application.models.export_results import ManifestEntry
from biblio_export.application.processing import CancellationToken
from biblio_export.application.services import ExportDispatcher

# Data models
from biblio_export.core.domain import Issue
from biblio_export.core.domain import ManifestStatus
from biblio_export.core.domain import Severity
from biblio_export.core.domain import Work
from biblio_export.core.domain.errors import ExportError

# Lower-level building blocks
from biblio_export.adapters.specifications import SpecificationRegistry
from biblio_export.adapters.specifications import build_registry
from biblio_export.infrastructure.client import MetadataClient
from biblio_export.infrastructure.client import QueryParameters
from biblio_export.infrastructure.config import ConfigLoader

# Version info
__version__ = "0.1.0"

__all__: list[str] = [
    # Primary API
    "ExportDispatcher",
    "MetadataClient",
    "get_app",
    # Results
    "BatchExportResult",
    "ExportDocument",
    "Manifest",
    "ManifestEntry",
    # Data models
    "Issue",
    "ManifestStatus",
    "Severity",
    "Work",
    "ExportError",
    # Advanced usage
    "CancellationToken",
    "ConfigLoader",
    "QueryParameters",
    "SpecificationRegistry",
    "build_registry",
    # Version
    "__version__",
]
