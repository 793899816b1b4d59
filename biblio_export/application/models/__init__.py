# biblio_export/application/models/__init__.py

"""Application result models"""

# Local imports
from biblio_export.application.models.export_results import BatchExportResult
from biblio_export.application.models.export_results import ExportDocument
from biblio_export.application.models.export_results import Manifest
from biblio_export.application.models.export_results import ManifestEntry

__all__ = ["BatchExportResult", "ExportDocument", "Manifest", "ManifestEntry"]
