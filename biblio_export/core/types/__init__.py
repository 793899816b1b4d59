# biblio_export/core/types/__init__.py

"""Shared type aliases and protocols"""

# Local imports
from biblio_export.core.types.json import JSONDict
from biblio_export.core.types.json import JSONList
from biblio_export.core.types.json import JSONType
from biblio_export.core.types.protocols import BatchPreparing
from biblio_export.core.types.protocols import BinarySink
from biblio_export.core.types.protocols import Specification

__all__ = ["BatchPreparing", "BinarySink", "JSONDict", "JSONList", "JSONType", "Specification"]
