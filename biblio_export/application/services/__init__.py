# biblio_export/application/services/__init__.py

"""Application services"""

# Local imports
from biblio_export.application.services._export_dispatcher import ExportDispatcher

__all__ = ["ExportDispatcher"]
