# biblio_export/adapters/api/__init__.py

"""HTTP request surface"""

# Local imports
from biblio_export.adapters.api._archive import build_archive
from biblio_export.adapters.api._errors import status_code_for
from biblio_export.adapters.api.application import get_app

__all__ = ["build_archive", "get_app", "status_code_for"]
