# biblio_export/core/domain/errors.py

"""Error taxonomy for export requests

Every error carries a stable ``kind`` string used in manifests and in the
request surface's JSON error bodies.
"""

# Standard library imports
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    # Local imports
    from biblio_export.core.domain.issue import Issue


class ExportError(Exception):
    """Base class for all export failures"""

    kind = "export_error"
    retryable = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ExportError):
    """Work or publisher does not exist in the repository"""

    kind = "not_found"

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class UnsupportedFormatError(ExportError):
    """No specification is registered for the requested format and version"""

    kind = "unsupported_format"

    def __init__(self, format_id: str, version: str) -> None:
        super().__init__(f"Unsupported format: {format_id} {version}")
        self.format_id = format_id
        self.version = version


class ValidationFailedError(ExportError):
    """A work is missing fields the target format requires"""

    kind = "validation_failed"

    def __init__(self, work_id: str, issues: "list[Issue]") -> None:
        fields = ", ".join(issue.field for issue in issues if issue.is_error)
        super().__init__(f"Work {work_id} failed validation: {fields}")
        self.work_id = work_id
        self.issues = issues


class GenerationError(ExportError):
    """Adapter fault after successful validation; always a bug, never retried"""

    kind = "generation_error"


class UpstreamUnavailableError(ExportError):
    """Metadata repository could not be reached after bounded retries"""

    kind = "upstream_unavailable"
    retryable = True


class PoolExhaustedError(UpstreamUnavailableError):
    """No connection became free within the pool wait timeout"""

    kind = "pool_exhausted"
    retryable = False


class MalformedResponseError(ExportError):
    """Repository answered with something that is not a valid work record"""

    kind = "malformed_response"


class ExportTimeoutError(ExportError):
    """Request exceeded its wall-clock budget"""

    kind = "timed_out"


class ExportCancelledError(ExportError):
    """Request was cancelled by its caller"""

    kind = "cancelled"
