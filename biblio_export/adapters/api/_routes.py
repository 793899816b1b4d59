# biblio_export/adapters/api/_routes.py

"""Export endpoints"""

# Standard library imports
from typing import Annotated

# Third party imports
from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi.responses import Response
from fastapi.responses import StreamingResponse

# Local imports
from biblio_export.adapters.api._archive import iter_archive
from biblio_export.adapters.api._archive import summary_headers
from biblio_export.adapters.api._dependencies import get_dispatcher
from biblio_export.application.services import ExportDispatcher
from biblio_export.core.types.json import JSONDict

router = APIRouter(tags=["export"])

Dispatcher = Annotated[ExportDispatcher, Depends(get_dispatcher)]
Timeout = Annotated[float | None, Query(gt=0, description="Wall-clock budget in seconds")]


def _attachment(file_name: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{file_name}"'}


@router.get("/formats", summary="List registered formats")
def list_formats(dispatcher: Dispatcher) -> list[JSONDict]:
    return [
        descriptor.model_dump() for descriptor in dispatcher.registry.list_specifications()
    ]


@router.get("/works/{work_id}/{format_id}/{version}", summary="Export one work")
def export_work(
    work_id: str,
    format_id: str,
    version: str,
    dispatcher: Dispatcher,
    timeout: Timeout = None,
) -> Response:
    """Standalone document for a single work

    Errors are rendered by the application's ExportError handler.
    """
    document = dispatcher.export_work(work_id, format_id, version, timeout=timeout)
    return Response(
        content=document.content,
        media_type=document.content_type,
        headers=_attachment(document.file_name),
    )


@router.get("/publishers/{publisher_id}/{format_id}/{version}", summary="Export a catalogue")
def export_catalogue(
    publisher_id: str,
    format_id: str,
    version: str,
    dispatcher: Dispatcher,
    combined: Annotated[bool | None, Query(description="Single combined document")] = None,
    timeout: Timeout = None,
) -> StreamingResponse:
    """ZIP archive with ``manifest.json`` and the generated output"""
    result = dispatcher.export_catalogue(
        publisher_id, format_id, version, combined=combined, timeout=timeout
    )
    headers = summary_headers(result)
    headers.update(_attachment(f"{publisher_id}_{format_id}_{version}.zip"))
    return StreamingResponse(iter_archive(result), media_type="application/zip", headers=headers)
