# biblio_export/adapters/specifications/_common.py

"""Helpers shared by the format adapters"""

# Standard library imports
from datetime import UTC
from datetime import datetime
from typing import Callable
import xml.etree.ElementTree as ET

# Third party imports
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

# Local imports
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Contribution
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BinarySink

# Source of the timestamp written into message headers
type Clock = Callable[[], datetime]

# Roles credited as creators in citation and deposit formats
PRIMARY_ROLES = (ContributionType.AUTHOR, ContributionType.EDITOR)


def utc_now() -> datetime:
    return datetime.now(UTC)


def write_document(sink: BinarySink, data: bytes) -> None:
    """Hand a fully built document to the sink in a single write"""
    sink.write(data)


def xml_text(value: object) -> str:
    """Text with the C0 control characters that XML 1.0 forbids removed"""
    return ILLEGAL_CHARACTERS_RE.sub("", str(value))


def sub_element(
    parent: ET.Element, tag: str, text: object = None, /, **attrib: str
) -> ET.Element:
    """Append a child element, setting its text when a value is given"""
    element = ET.SubElement(parent, tag, attrib)
    if text is not None:
        element.text = xml_text(text)
    return element


def add_comment(parent: ET.Element, text: str) -> None:
    """Append an XML comment; "--" is not allowed inside comments"""
    parent.append(ET.Comment(f" {xml_text(text).replace('--', '- -')} "))


def serialize_xml(root: ET.Element) -> bytes:
    """Pretty-printed UTF-8 document with an XML declaration"""
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return ('<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n").encode("utf-8")


def warning_comments(issues: list[Issue]) -> list[str]:
    return [f"Warning: {issue.field}: {issue.message}" for issue in issues if not issue.is_error]


def creators(work: Work) -> list[Contribution]:
    """Authors, or editors when a work has no authors, in rank order"""
    authors = work.contributions_of(ContributionType.AUTHOR)
    return authors or work.contributions_of(ContributionType.EDITOR)


def require(issues: list[Issue], field: str, value: object, label: str) -> None:
    """Append an Error issue when a required value is empty"""
    if value is None or value == "" or value == () or value == []:
        issues.append(Issue.error(field, f"{label} requires {field}"))


def identifier_issues(work: Work, severity: Severity) -> list[Issue]:
    """Issues for a DOI or ISBNs that the repository holds in an unusable form

    Formats that report these as warnings leave the values out of their output.
    """
    suffix = "" if severity is Severity.ERROR else "; omitted"
    issues = []
    if work.doi and not work.valid_doi:
        issues.append(
            Issue(field="doi", severity=severity, message=f"Not a valid DOI: {work.doi}{suffix}")
        )
    for isbn in work.invalid_isbns:
        issues.append(
            Issue(
                field="publications.isbn",
                severity=severity,
                message=f"Not a valid ISBN: {isbn}{suffix}",
            )
        )
    return issues
