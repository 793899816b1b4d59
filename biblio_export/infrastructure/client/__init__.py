# biblio_export/infrastructure/client/__init__.py

"""Metadata repository client"""

# Local imports
from biblio_export.infrastructure.client._client import FetchResult
from biblio_export.infrastructure.client._client import MetadataClient
from biblio_export.infrastructure.client._client import WorkPager
from biblio_export.infrastructure.client._parser import parse_work
from biblio_export.infrastructure.client._queries import QueryParameters
from biblio_export.infrastructure.client._retry import RetryPolicy
from biblio_export.infrastructure.client._retry import RetryState
from biblio_export.infrastructure.client._retry import TransientFailure

__all__ = [
    "FetchResult",
    "MetadataClient",
    "QueryParameters",
    "RetryPolicy",
    "RetryState",
    "TransientFailure",
    "WorkPager",
    "parse_work",
]
