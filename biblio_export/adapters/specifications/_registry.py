# biblio_export/adapters/specifications/_registry.py

"""Write-once registry of export specifications keyed by (format, version)"""

# Standard library imports
from logging import getLogger
from threading import Lock
from types import MappingProxyType
from typing import Iterable

# Third party imports
from pydantic import BaseModel
from pydantic import ConfigDict

# Local imports
from biblio_export.adapters.specifications._common import Clock
from biblio_export.adapters.specifications._common import utc_now
from biblio_export.adapters.specifications.citation import BibtexSpecification
from biblio_export.adapters.specifications.citation import CslJsonSpecification
from biblio_export.adapters.specifications.crossref import CrossrefSpecification
from biblio_export.adapters.specifications.marc21 import Marc21Specification
from biblio_export.adapters.specifications.marc21 import MarcXmlSpecification
from biblio_export.adapters.specifications.onix import OnixSpecification
from biblio_export.adapters.specifications.tabular import KBART_COLUMNS
from biblio_export.adapters.specifications.tabular import TabularSpecification
from biblio_export.adapters.specifications.tabular import XlsxSpecification
from biblio_export.core.domain.errors import UnsupportedFormatError
from biblio_export.core.types.protocols import Specification
from biblio_export.infrastructure.config import ConfigLoader
from biblio_export.infrastructure.config import get_config

logger = getLogger(__name__)


class SpecificationDescriptor(BaseModel):
    """Public description of a registered specification"""

    model_config = ConfigDict(frozen=True)

    format_id: str
    version: str
    name: str
    content_type: str
    file_extension: str
    supports_combined: bool = True


class SpecificationRegistry:
    """Read-only mapping from (format id, version) to a specification"""

    __slots__ = ("_specifications",)

    def __init__(self, specifications: Iterable[Specification]) -> None:
        entries: dict[tuple[str, str], Specification] = {}
        for specification in specifications:
            key = (specification.format_id, specification.version)
            if key in entries:
                raise ValueError(f"Duplicate specification: {key[0]} {key[1]}")
            entries[key] = specification
        self._specifications = MappingProxyType(entries)

    def resolve(self, format_id: str, version: str) -> Specification:
        """Look up a specification

        Raises:
            UnsupportedFormatError: If nothing is registered for the pair
        """
        try:
            return self._specifications[(format_id.lower(), version)]
        except KeyError:
            raise UnsupportedFormatError(format_id, version) from None

    def list_specifications(self) -> list[SpecificationDescriptor]:
        """Descriptors sorted by format id then version"""
        return [
            SpecificationDescriptor(
                format_id=spec.format_id,
                version=spec.version,
                name=spec.name,
                content_type=spec.content_type,
                file_extension=spec.file_extension,
            )
            for _, spec in sorted(self._specifications.items(), key=lambda item: item[0])
        ]

    def __contains__(self, key: object) -> bool:
        return key in self._specifications

    def __len__(self) -> int:
        return len(self._specifications)


def build_registry(
    config: ConfigLoader | None = None, clock: Clock = utc_now
) -> SpecificationRegistry:
    """Create a registry holding every built-in specification

    Args:
        config: Configuration for message headers, process default when None
        clock: Timestamp source for header fields
    """
    config = config or get_config()
    registry = SpecificationRegistry(
        [
            OnixSpecification("3.0", config.onix, clock),
            OnixSpecification("2.1", config.onix, clock),
            Marc21Specification(),
            MarcXmlSpecification(),
            TabularSpecification("csv", "CSV catalogue", ","),
            TabularSpecification(
                "tsv",
                "TSV catalogue",
                "\t",
                content_type="text/tab-separated-values",
                file_extension="tsv",
                flatten_whitespace=True,
            ),
            TabularSpecification(
                "kbart",
                "KBART title list",
                "\t",
                columns=KBART_COLUMNS,
                content_type="text/tab-separated-values",
                file_extension="txt",
                flatten_whitespace=True,
                title_list=True,
            ),
            XlsxSpecification(clock=clock),
            BibtexSpecification(),
            CslJsonSpecification(),
            CrossrefSpecification(config.crossref, clock),
        ]
    )
    logger.debug(f"Registered {len(registry)} export specifications")
    return registry


# Global default instance
_default_registry: SpecificationRegistry | None = None
_registry_lock = Lock()


def get_registry() -> SpecificationRegistry:
    """Process-wide registry, built on first use and never modified"""
    global _default_registry
    if _default_registry is None:
        with _registry_lock:
            if _default_registry is None:
                _default_registry = build_registry()
    return _default_registry
