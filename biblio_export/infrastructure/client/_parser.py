# biblio_export/infrastructure/client/_parser.py

"""Convert repository JSON into immutable work snapshots"""

# Standard library imports
from logging import getLogger

# Third party imports
from pydantic import ValidationError

# Local imports
from biblio_export.core.domain.errors import MalformedResponseError
from biblio_export.core.domain.work import Publisher
from biblio_export.core.domain.work import Work
from biblio_export.core.types.json import JSONDict
from biblio_export.core.types.json import JSONType

logger = getLogger(__name__)


def _dict(value: JSONType) -> JSONDict:
    return value if isinstance(value, dict) else {}


def _list(value: JSONType) -> list[JSONDict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _publisher(raw: JSONDict) -> JSONDict:
    return {
        "publisher_id": raw.get("publisherId"),
        "publisher_name": raw.get("publisherName"),
        "publisher_shortname": raw.get("publisherShortname"),
        "publisher_url": raw.get("publisherUrl"),
    }


def _contribution(raw: JSONDict) -> JSONDict:
    contributor = _dict(raw.get("contributor"))
    return {
        "contributor_id": contributor.get("contributorId"),
        "orcid": contributor.get("orcid"),
        "contribution_type": raw.get("contributionType"),
        "first_name": raw.get("firstName"),
        "last_name": raw.get("lastName"),
        "full_name": raw.get("fullName"),
        "main_contribution": raw.get("mainContribution", True),
        "biography": raw.get("biography"),
        "rank": raw.get("contributionOrdinal"),
        "affiliations": [
            {
                "institution_name": _dict(affiliation.get("institution")).get("institutionName"),
                "position": affiliation.get("position"),
                "affiliation_ordinal": affiliation.get("affiliationOrdinal", 1),
            }
            for affiliation in sorted(
                _list(raw.get("affiliations")), key=lambda a: a.get("affiliationOrdinal") or 0
            )
        ],
    }


def _publication(raw: JSONDict) -> JSONDict:
    return {
        "publication_id": raw.get("publicationId"),
        "publication_type": raw.get("publicationType"),
        "isbn": raw.get("isbn"),
        "prices": [
            {"currency_code": price.get("currencyCode"), "unit_price": price.get("unitPrice")}
            for price in _list(raw.get("prices"))
        ],
        "locations": [
            {
                "landing_page": location.get("landingPage"),
                "full_text_url": location.get("fullTextUrl"),
                "location_platform": location.get("locationPlatform") or "OTHER",
                "canonical": bool(location.get("canonical")),
            }
            for location in _list(raw.get("locations"))
        ],
    }


def _to_snapshot_fields(raw: JSONDict) -> JSONDict:
    """Map camelCase repository fields to snapshot field names"""
    imprint = _dict(raw.get("imprint"))
    return {
        "work_id": raw.get("workId"),
        "work_type": raw.get("workType"),
        "work_status": raw.get("workStatus") or "UNSPECIFIED",
        "title": raw.get("title"),
        "subtitle": raw.get("subtitle"),
        "full_title": raw.get("fullTitle") or raw.get("title"),
        "doi": raw.get("doi"),
        "reference": raw.get("reference"),
        "edition": raw.get("edition"),
        "publication_date": raw.get("publicationDate"),
        "place": raw.get("place"),
        "page_count": raw.get("pageCount"),
        "license": raw.get("license"),
        "copyright_holder": raw.get("copyrightHolder"),
        "landing_page": raw.get("landingPage"),
        "lccn": raw.get("lccn"),
        "oclc": raw.get("oclc"),
        "short_abstract": raw.get("shortAbstract"),
        "long_abstract": raw.get("longAbstract"),
        "toc": raw.get("toc"),
        "cover_url": raw.get("coverUrl"),
        "updated_at": raw.get("updatedAt"),
        "imprint": {
            "imprint_id": imprint.get("imprintId"),
            "imprint_name": imprint.get("imprintName"),
            "imprint_url": imprint.get("imprintUrl"),
            "publisher": _publisher(_dict(imprint.get("publisher"))),
        },
        "languages": [
            {
                "language_code": language.get("languageCode"),
                "main_language": language.get("mainLanguage", True),
            }
            for language in _list(raw.get("languages"))
        ],
        "contributions": [_contribution(item) for item in _list(raw.get("contributions"))],
        "publications": [_publication(item) for item in _list(raw.get("publications"))],
        "subjects": [
            {
                "subject_type": subject.get("subjectType"),
                "subject_code": subject.get("subjectCode"),
                "subject_ordinal": subject.get("subjectOrdinal", 1),
            }
            for subject in _list(raw.get("subjects"))
        ],
        "issues": [
            {
                "series_name": _dict(issue.get("series")).get("seriesName"),
                "series_type": _dict(issue.get("series")).get("seriesType"),
                "issn_print": _dict(issue.get("series")).get("issnPrint"),
                "issn_digital": _dict(issue.get("series")).get("issnDigital"),
                "issue_ordinal": issue.get("issueOrdinal", 1),
            }
            for issue in _list(raw.get("issues"))
        ],
        "fundings": [
            {
                "funder_name": _dict(funding.get("institution")).get("institutionName"),
                "funder_doi": _dict(funding.get("institution")).get("institutionDoi"),
                "program": funding.get("program"),
                "project_name": funding.get("projectName"),
                "grant_number": funding.get("grantNumber"),
            }
            for funding in _list(raw.get("fundings"))
        ],
    }


def parse_work(raw: JSONType) -> Work:
    """Build a Work snapshot from one repository work object

    Raises:
        MalformedResponseError: If the object does not describe a valid work
    """
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Expected a work object, got {type(raw).__name__}")
    try:
        return Work.model_validate(_to_snapshot_fields(raw))
    except ValidationError as e:
        work_id = raw.get("workId", "<unknown>")
        logger.debug(f"Work {work_id} failed snapshot validation: {e}")
        raise MalformedResponseError(
            f"Work {work_id} is not a valid record: {e.error_count()} invalid field(s)"
        ) from e


def parse_publisher(raw: JSONType) -> Publisher:
    """Build a Publisher from a repository publisher object"""
    if not isinstance(raw, dict):
        raise MalformedResponseError(f"Expected a publisher object, got {type(raw).__name__}")
    try:
        return Publisher.model_validate(_publisher(raw))
    except ValidationError as e:
        raise MalformedResponseError(f"Publisher is not a valid record: {e}") from e
