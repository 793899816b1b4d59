# biblio_export/core/types/protocols.py

"""Protocol definitions for format specifications and output sinks."""

# Standard library imports
from typing import Protocol
from typing import Sequence
from typing import runtime_checkable

# Local imports
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Work

# Type alias for a tabular row
type Row = list[str]


# ============================================================================
# Output Protocols
# ============================================================================


class BinarySink(Protocol):
    """Anything bytes can be written to (file, BytesIO, response buffer)."""

    def write(self, data: bytes, /) -> int: ...


# ============================================================================
# Specification Protocols
# ============================================================================


@runtime_checkable
class Specification[F](Protocol):
    """Export format of one version

    ``F`` is the adapter's in-memory record fragment. Fragments produced by
    ``render_record`` are only ever passed back to ``assemble`` of the same
    specification instance.
    """

    format_id: str
    version: str
    name: str
    content_type: str
    file_extension: str

    def validate(self, work: Work) -> list[Issue]: ...
    def generate(self, work: Work, sink: BinarySink) -> None: ...
    def render_record(self, work: Work) -> F: ...
    def assemble(self, fragments: Sequence[F], sink: BinarySink) -> None: ...


@runtime_checkable
class BatchPreparing[F](Protocol):
    """Specification whose standalone documents depend on the rest of their batch

    When a batch is written as one document per record, ``prepare_batch``
    receives every generated fragment in record order and returns them
    adjusted, one for one, before each is assembled on its own.
    """

    def prepare_batch(self, fragments: Sequence[F]) -> list[F]: ...


__all__ = ["BatchPreparing", "BinarySink", "Row", "Specification"]
