# biblio_export/core/domain/issue.py

"""Format validation issue"""

# Third party imports
from pydantic import BaseModel
from pydantic import ConfigDict

# Local imports
from biblio_export.core.domain.enums import Severity


class Issue(BaseModel):
    """A single finding from a format's validate step"""

    model_config = ConfigDict(frozen=True)

    field: str
    severity: Severity
    message: str

    @classmethod
    def error(cls, field: str, message: str) -> "Issue":
        return cls(field=field, severity=Severity.ERROR, message=message)

    @classmethod
    def warning(cls, field: str, message: str) -> "Issue":
        return cls(field=field, severity=Severity.WARNING, message=message)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> dict[str, str]:
        """Convert to a JSON-ready dictionary"""
        return {"field": self.field, "severity": self.severity.value, "message": self.message}


def has_errors(issues: list[Issue]) -> bool:
    """Check whether any issue blocks generation"""
    return any(issue.is_error for issue in issues)
