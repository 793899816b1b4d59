# biblio_export/adapters/api/_errors.py

"""Mapping of export errors onto HTTP responses"""

# Standard library imports
from http import HTTPStatus
from logging import getLogger

# Third party imports
from fastapi import Request
from fastapi.responses import JSONResponse

# Local imports
from biblio_export.core.domain.errors import ExportCancelledError
from biblio_export.core.domain.errors import ExportError
from biblio_export.core.domain.errors import ExportTimeoutError
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.errors import MalformedResponseError
from biblio_export.core.domain.errors import NotFoundError
from biblio_export.core.domain.errors import UnsupportedFormatError
from biblio_export.core.domain.errors import UpstreamUnavailableError
from biblio_export.core.domain.errors import ValidationFailedError
from biblio_export.core.types.json import JSONDict

logger = getLogger(__name__)

# Most specific first; PoolExhaustedError is an UpstreamUnavailableError
ERROR_STATUS_CODES: tuple[tuple[type[ExportError], int], ...] = (
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (UnsupportedFormatError, HTTPStatus.NOT_FOUND),
    (ValidationFailedError, HTTPStatus.UNPROCESSABLE_ENTITY),
    (GenerationError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (UpstreamUnavailableError, HTTPStatus.BAD_GATEWAY),
    (MalformedResponseError, HTTPStatus.BAD_GATEWAY),
    (ExportCancelledError, HTTPStatus.SERVICE_UNAVAILABLE),
    (ExportTimeoutError, HTTPStatus.GATEWAY_TIMEOUT),
)


def status_code_for(error: ExportError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return int(code)
    return int(HTTPStatus.INTERNAL_SERVER_ERROR)


def error_body(error: ExportError) -> JSONDict:
    body: JSONDict = {"error": error.kind, "message": error.message}
    if isinstance(error, ValidationFailedError):
        body["issues"] = [issue.to_dict() for issue in error.issues]
    return body


async def export_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any ExportError as the JSON error body"""
    if not isinstance(exc, ExportError):
        raise exc
    code = status_code_for(exc)
    if code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.kind}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path}: {exc.kind}")
    return JSONResponse(status_code=code, content=error_body(exc))
