# biblio_export/core/domain/__init__.py

"""Core domain entities, enumerations and errors"""

# Local imports
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import ManifestStatus
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import RecordState
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.enums import SubjectType
from biblio_export.core.domain.enums import WorkStatus
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Contribution
from biblio_export.core.domain.work import Imprint
from biblio_export.core.domain.work import Publication
from biblio_export.core.domain.work import Publisher
from biblio_export.core.domain.work import Subject
from biblio_export.core.domain.work import Work

__all__ = [
    "Contribution",
    "ContributionType",
    "Imprint",
    "Issue",
    "ManifestStatus",
    "Publication",
    "PublicationType",
    "Publisher",
    "RecordState",
    "Severity",
    "Subject",
    "SubjectType",
    "Work",
    "WorkStatus",
    "WorkType",
]
