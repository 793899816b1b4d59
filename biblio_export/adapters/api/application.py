# biblio_export/adapters/api/application.py

"""FastAPI application factory"""

# Standard library imports
from contextlib import asynccontextmanager
from importlib import metadata
from logging import getLogger
from typing import AsyncIterator

# Third party imports
from fastapi import FastAPI

# Local imports
from biblio_export.adapters.api._errors import export_error_handler
from biblio_export.adapters.api._routes import router
from biblio_export.adapters.specifications import build_registry
from biblio_export.application.services import ExportDispatcher
from biblio_export.core.domain.errors import ExportError
from biblio_export.infrastructure.client import MetadataClient
from biblio_export.infrastructure.config import ConfigLoader
from biblio_export.infrastructure.config import get_config

logger = getLogger(__name__)


def _version() -> str:
    try:
        return metadata.version("biblio-export")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def get_app(
    dispatcher: ExportDispatcher | None = None, config: ConfigLoader | None = None
) -> FastAPI:
    """Build the export server

    Args:
        dispatcher: Pre-built dispatcher (tests); one is created at start-up when None
        config: Configuration, the process default when None

    Returns:
        FastAPI application
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if dispatcher is not None:
            app.state.dispatcher = dispatcher
            yield
            return

        client = MetadataClient(config.client)
        app.state.dispatcher = ExportDispatcher(
            client, build_registry(config), config.processing
        )
        logger.info(f"Export server using repository {config.client.graphql_url}")
        try:
            yield
        finally:
            client.close()

    app = FastAPI(title="biblio-export", version=_version(), lifespan=lifespan)
    app.add_exception_handler(ExportError, export_error_handler)
    app.include_router(router)
    return app
