# biblio_export/adapters/api/_archive.py

"""ZIP packaging of batch export results"""

# Standard library imports
from io import BytesIO
from json import dumps
from typing import Iterator
from zipfile import ZIP_DEFLATED
from zipfile import ZipFile
from zipfile import ZipInfo

# Local imports
from biblio_export.application.models.export_results import BatchExportResult
from biblio_export.core.domain.enums import ManifestStatus

MANIFEST_NAME = "manifest.json"
ARCHIVE_CHUNK_SIZE = 64 * 1024

# Fixed member timestamp so identical results give identical archives
ARCHIVE_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def _add_member(archive: ZipFile, name: str, content: bytes) -> None:
    info = ZipInfo(name, date_time=ARCHIVE_DATE_TIME)
    info.compress_type = ZIP_DEFLATED
    archive.writestr(info, content)


def build_archive(result: BatchExportResult) -> bytes:
    """Pack the manifest and the generated documents into a ZIP archive

    The manifest is always the first member. Documents follow in record
    order.
    """
    buffer = BytesIO()
    with ZipFile(buffer, "w") as archive:
        manifest = dumps(result.to_dict(), indent=2, ensure_ascii=False)
        _add_member(archive, MANIFEST_NAME, manifest.encode("utf-8"))
        if result.document is not None:
            _add_member(archive, result.document.file_name, result.document.content)
        for document in result.documents:
            _add_member(archive, document.file_name, document.content)
    return buffer.getvalue()


def iter_archive(result: BatchExportResult) -> Iterator[bytes]:
    """Archive bytes in fixed-size chunks for a streaming response"""
    archive = build_archive(result)
    for start in range(0, len(archive), ARCHIVE_CHUNK_SIZE):
        yield archive[start : start + ARCHIVE_CHUNK_SIZE]


def summary_headers(result: BatchExportResult) -> dict[str, str]:
    """Manifest counts as ``X-Export-*`` response headers"""
    headers = {"X-Export-Total": str(result.manifest.total)}
    for status in ManifestStatus:
        header = "X-Export-" + "-".join(part.capitalize() for part in status.value.split("_"))
        headers[header] = str(result.manifest.count(status))
    headers["X-Export-Complete"] = "true" if result.complete else "false"
    return headers
