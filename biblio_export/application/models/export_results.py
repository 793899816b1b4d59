# biblio_export/application/models/export_results.py

"""Pydantic models for export outputs and batch manifests"""

# Third party imports
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

# Local imports
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.issue import Issue
from biblio_export.core.types.json import JSONDict

RESULT_MODEL_CONFIG = ConfigDict(frozen=True, extra="forbid")


class ExportDocument(BaseModel):
    """A generated document and how to deliver it"""

    model_config = RESULT_MODEL_CONFIG

    format_id: str = Field(..., description="Format identifier")
    version: str = Field(..., description="Format version")
    content_type: str = Field(..., description="MIME type of the content")
    file_name: str = Field(..., description="Suggested file name")
    content: bytes = Field(..., description="Serialized document")
    work_id: str | None = Field(None, description="Source work; None for combined documents")

    @property
    def size(self) -> int:
        return len(self.content)


class ManifestEntry(BaseModel):
    """Terminal outcome of one record in a batch"""

    model_config = RESULT_MODEL_CONFIG

    index: int = Field(..., ge=0, description="Position in request or catalogue order")
    work_id: str = Field(..., description="Work identifier")
    status: ManifestStatus = Field(..., description="Terminal status")
    error_kind: str | None = Field(None, description="Error kind for failed records")
    message: str | None = Field(None, description="Human-readable reason")
    issues: tuple[Issue, ...] = Field((), description="Per-field validation findings")
    file_name: str | None = Field(None, description="Per-record document name")

    def to_dict(self) -> JSONDict:
        data: JSONDict = {
            "index": self.index,
            "work_id": self.work_id,
            "status": self.status.value,
        }
        if self.error_kind:
            data["error"] = self.error_kind
        if self.message:
            data["message"] = self.message
        if self.issues:
            data["issues"] = [issue.to_dict() for issue in self.issues]
        if self.file_name:
            data["file"] = self.file_name
        return data


class Manifest(BaseModel):
    """Ordered record outcomes of one batch export"""

    model_config = RESULT_MODEL_CONFIG

    format_id: str
    version: str
    entries: tuple[ManifestEntry, ...] = ()

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def counts(self) -> dict[str, int]:
        """Record count per status, every status present"""
        counts = {status.value: 0 for status in ManifestStatus}
        for entry in self.entries:
            counts[entry.status.value] += 1
        return counts

    def count(self, status: ManifestStatus) -> int:
        return sum(1 for entry in self.entries if entry.status is status)

    def entries_with(self, status: ManifestStatus) -> list[ManifestEntry]:
        return [entry for entry in self.entries if entry.status is status]

    def to_dict(self) -> JSONDict:
        return {
            "format": self.format_id,
            "version": self.version,
            "total": self.total,
            "counts": dict(self.counts),
            "records": [entry.to_dict() for entry in self.entries],
        }


class BatchExportResult(BaseModel):
    """Manifest plus either one combined document or per-record documents"""

    model_config = RESULT_MODEL_CONFIG

    manifest: Manifest
    combined: bool = Field(..., description="Whether output is a single combined document")
    document: ExportDocument | None = Field(None, description="Combined document")
    documents: tuple[ExportDocument, ...] = Field((), description="Per-record documents")
    complete: bool = Field(True, description="False when enumeration stopped before the end")
    fetch_error: str | None = Field(None, description="Why catalogue enumeration stopped")

    @property
    def generated(self) -> int:
        return self.manifest.count(ManifestStatus.GENERATED)

    def to_dict(self) -> JSONDict:
        data = self.manifest.to_dict()
        data["combined"] = self.combined
        data["complete"] = self.complete
        if self.fetch_error:
            data["fetch_error"] = self.fetch_error
        return data
