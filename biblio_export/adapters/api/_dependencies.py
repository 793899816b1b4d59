# biblio_export/adapters/api/_dependencies.py

"""Request-scoped dependencies"""

# Third party imports
from fastapi import Request

# Local imports
from biblio_export.application.services import ExportDispatcher


def get_dispatcher(request: Request) -> ExportDispatcher:
    """The dispatcher created for the application at start-up"""
    return request.app.state.dispatcher
