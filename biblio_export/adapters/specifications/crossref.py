# biblio_export/adapters/specifications/crossref.py

"""Crossref deposit metadata (schema 5.3.1) for books

The strictest format: a DOI, a landing page and a publication date are
all required, and chapters and journal issues are rejected because their
deposits need parent metadata the work snapshot does not carry.
"""

# Standard library imports
from logging import getLogger
from typing import Sequence
import xml.etree.ElementTree as ET

# Local imports
from biblio_export.adapters.specifications._common import Clock
from biblio_export.adapters.specifications._common import identifier_issues
from biblio_export.adapters.specifications._common import require
from biblio_export.adapters.specifications._common import serialize_xml
from biblio_export.adapters.specifications._common import sub_element
from biblio_export.adapters.specifications._common import utc_now
from biblio_export.adapters.specifications._common import write_document
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BinarySink
from biblio_export.infrastructure.config._models import CrossrefConfig
from biblio_export.shared.utils.identifiers import hyphenate_isbn13
from biblio_export.shared.utils.text_utils import strip_markup

logger = getLogger(__name__)

CROSSREF_NAMESPACE = "http://www.crossref.org/schema/5.3.1"
JATS_NAMESPACE = "http://www.ncbi.nlm.nih.gov/JATS1"
SCHEMA_VERSION = "5.3.1"
MAX_ISBNS = 6

BOOK_TYPES = {
    WorkType.MONOGRAPH: "monograph",
    WorkType.TEXTBOOK: "monograph",
    WorkType.EDITED_BOOK: "edited_book",
    WorkType.BOOK_SET: "other",
}

CONTRIBUTOR_ROLES = {
    ContributionType.AUTHOR: "author",
    ContributionType.EDITOR: "editor",
    ContributionType.TRANSLATOR: "translator",
}

# ISO 639-2/B to the ISO 639-1 codes Crossref accepts
LANGUAGE_CODES = {
    "eng": "en",
    "fre": "fr",
    "fra": "fr",
    "ger": "de",
    "deu": "de",
    "spa": "es",
    "ita": "it",
    "por": "pt",
    "dut": "nl",
    "nld": "nl",
    "pol": "pl",
    "swe": "sv",
    "dan": "da",
    "nor": "no",
    "fin": "fi",
}


class CrossrefSpecification:
    """Crossref ``doi_batch`` deposit"""

    format_id = "crossref"
    version = SCHEMA_VERSION
    name = "Crossref deposit"
    content_type = "application/vnd.crossref.deposit+xml"
    file_extension = "xml"

    def __init__(self, config: CrossrefConfig | None = None, clock: Clock = utc_now) -> None:
        self._config = config or CrossrefConfig()
        self._clock = clock

    def validate(self, work: Work) -> list[Issue]:
        issues: list[Issue] = []
        require(issues, "doi", work.doi, "Crossref deposit")
        issues.extend(identifier_issues(work, Severity.ERROR))
        require(issues, "landing_page", work.landing_page, "Crossref deposit")
        require(issues, "publication_date", work.publication_date, "Crossref deposit")
        if work.work_type not in BOOK_TYPES:
            issues.append(
                Issue.error(
                    "work_type",
                    f"{work.work_type.value} deposits need parent metadata; not supported",
                )
            )
        if not any(c.contribution_type in CONTRIBUTOR_ROLES for c in work.contributions):
            issues.append(Issue.warning("contributions", "No author, editor or translator"))
        if len(work.isbns) > MAX_ISBNS:
            issues.append(
                Issue.warning("publications", f"Only the first {MAX_ISBNS} ISBNs are sent")
            )
        return issues

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> ET.Element:
        book = ET.Element("book", {"book_type": BOOK_TYPES.get(work.work_type, "other")})
        metadata = sub_element(book, "book_metadata")
        language = LANGUAGE_CODES.get(work.main_language or "")
        if language:
            metadata.set("language", language)

        deposited = [c for c in work.contributions if c.contribution_type in CONTRIBUTOR_ROLES]
        if deposited:
            contributors = sub_element(metadata, "contributors")
            for position, contribution in enumerate(deposited):
                person = sub_element(
                    contributors,
                    "person_name",
                    sequence="first" if position == 0 else "additional",
                    contributor_role=CONTRIBUTOR_ROLES[contribution.contribution_type],
                )
                if contribution.first_name:
                    sub_element(person, "given_name", contribution.first_name)
                sub_element(person, "surname", contribution.last_name)
                affiliation = contribution.first_affiliation
                if affiliation:
                    affiliations = sub_element(person, "affiliations")
                    institution = sub_element(affiliations, "institution")
                    sub_element(institution, "institution_name", affiliation.institution_name)
                if contribution.orcid:
                    sub_element(person, "ORCID", f"https://orcid.org/{contribution.orcid}")

        titles = sub_element(metadata, "titles")
        sub_element(titles, "title", work.title)
        if work.subtitle:
            sub_element(titles, "subtitle", work.subtitle)

        if work.abstract:
            abstract = sub_element(metadata, "jats:abstract")
            sub_element(abstract, "jats:p", strip_markup(work.abstract))
        if work.edition:
            sub_element(metadata, "edition_number", work.edition)
        if work.publication_date:
            date = sub_element(metadata, "publication_date", media_type="online")
            sub_element(date, "month", f"{work.publication_date.month:02d}")
            sub_element(date, "day", f"{work.publication_date.day:02d}")
            sub_element(date, "year", work.publication_date.year)

        isbn_publications = [p for p in work.publications if p.isbn][:MAX_ISBNS]
        for publication in isbn_publications:
            media_type = "print" if publication.publication_type.is_print else "electronic"
            sub_element(metadata, "isbn", hyphenate_isbn13(publication.isbn), media_type=media_type)
        if not isbn_publications:
            sub_element(metadata, "noisbn", reason="monograph")

        publisher = sub_element(metadata, "publisher")
        sub_element(publisher, "publisher_name", work.publisher_name)
        if work.place:
            sub_element(publisher, "publisher_place", work.place)

        doi_data = sub_element(metadata, "doi_data")
        sub_element(doi_data, "doi", work.doi)
        sub_element(doi_data, "resource", work.landing_page)
        return book

    def assemble(self, fragments: Sequence[ET.Element], sink: BinarySink) -> None:
        root = ET.Element(
            "doi_batch",
            {
                "xmlns": CROSSREF_NAMESPACE,
                "xmlns:jats": JATS_NAMESPACE,
                "version": SCHEMA_VERSION,
            },
        )
        timestamp = self._clock().strftime("%Y%m%d%H%M%S")
        head = sub_element(root, "head")
        sub_element(head, "doi_batch_id", f"biblio_export_{timestamp}")
        sub_element(head, "timestamp", timestamp)
        depositor = sub_element(head, "depositor")
        sub_element(depositor, "depositor_name", self._config.depositor_name)
        sub_element(depositor, "email_address", self._config.depositor_email)
        sub_element(head, "registrant", self._config.registrant)

        body = sub_element(root, "body")
        body.extend(fragments)
        write_document(sink, serialize_xml(root))
