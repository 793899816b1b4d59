# biblio_export/adapters/specifications/__init__.py

"""Format adapters and their registry"""

# Local imports
from biblio_export.adapters.specifications._registry import SpecificationDescriptor
from biblio_export.adapters.specifications._registry import SpecificationRegistry
from biblio_export.adapters.specifications._registry import build_registry
from biblio_export.adapters.specifications._registry import get_registry
from biblio_export.adapters.specifications.citation import BibtexSpecification
from biblio_export.adapters.specifications.citation import CslJsonSpecification
from biblio_export.adapters.specifications.crossref import CrossrefSpecification
from biblio_export.adapters.specifications.marc21 import Marc21Specification
from biblio_export.adapters.specifications.marc21 import MarcXmlSpecification
from biblio_export.adapters.specifications.onix import OnixSpecification
from biblio_export.adapters.specifications.tabular import TabularSpecification
from biblio_export.adapters.specifications.tabular import XlsxSpecification

__all__ = [
    "BibtexSpecification",
    "CrossrefSpecification",
    "CslJsonSpecification",
    "Marc21Specification",
    "MarcXmlSpecification",
    "OnixSpecification",
    "SpecificationDescriptor",
    "SpecificationRegistry",
    "TabularSpecification",
    "XlsxSpecification",
    "build_registry",
    "get_registry",
]
