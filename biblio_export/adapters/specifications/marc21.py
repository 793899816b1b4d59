# biblio_export/adapters/specifications/marc21.py

"""MARC 21 bibliographic records as ISO 2709 and MARCXML

Both serializations share one ``MarcRecord`` built from the work. The
binary serializer computes every field's UTF-8 byte length and offset,
then the directory and base address, and the record length last. MARCXML
reuses the leader produced by the binary build.
"""

# Standard library imports
from logging import getLogger
from re import sub
from typing import Sequence
import xml.etree.ElementTree as ET

# Local imports
from biblio_export.adapters.specifications._common import identifier_issues
from biblio_export.adapters.specifications._common import serialize_xml
from biblio_export.adapters.specifications._common import sub_element
from biblio_export.adapters.specifications._common import write_document
from biblio_export.core.domain.enums import ContributionType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.enums import SubjectType
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.errors import GenerationError
from biblio_export.core.domain.issue import Issue
from biblio_export.core.domain.work import Work
from biblio_export.core.types.protocols import BinarySink
from biblio_export.shared.utils.text_utils import strip_markup
from biblio_export.shared.utils.text_utils import truncate_utf8

logger = getLogger(__name__)

MARCXML_NAMESPACE = "http://www.loc.gov/MARC21/slim"

SUBFIELD_DELIMITER = b"\x1f"
FIELD_TERMINATOR = b"\x1e"
RECORD_TERMINATOR = b"\x1d"

# Structural bytes that may not occur inside field data
DELIMITER_CHARACTERS = r"[\x1d\x1e\x1f]"

LEADER_LENGTH = 24
DIRECTORY_ENTRY_LENGTH = 12
MAX_FIELD_LENGTH = 9999
MAX_RECORD_LENGTH = 99999

# Indicators, one delimiter, the code and the terminator around a single-subfield value
SINGLE_SUBFIELD_OVERHEAD = 5
MAX_ABSTRACT_BYTES = MAX_FIELD_LENGTH - SINGLE_SUBFIELD_OVERHEAD

RELATOR_TERMS = {
    ContributionType.AUTHOR: "author",
    ContributionType.EDITOR: "editor",
    ContributionType.TRANSLATOR: "translator",
    ContributionType.PHOTOGRAPHER: "photographer",
    ContributionType.ILLUSTRATOR: "illustrator",
    ContributionType.MUSIC_EDITOR: "music editor",
    ContributionType.FOREWORD_BY: "writer of foreword",
    ContributionType.INTRODUCTION_BY: "writer of introduction",
    ContributionType.AFTERWORD_BY: "writer of afterword",
    ContributionType.PREFACE_BY: "writer of preface",
}

CLASSIFICATION_SOURCES = {
    SubjectType.BIC: "bicssc",
    SubjectType.BISAC: "bisacsh",
    SubjectType.THEMA: "thema",
}

NONFILING_ARTICLES = ("the ", "an ", "a ")


class DataField:
    """Variable data field with indicators and ordered subfields"""

    __slots__ = ("tag", "ind1", "ind2", "subfields")

    def __init__(self, tag: str, ind1: str, ind2: str, subfields: list[tuple[str, str]]) -> None:
        self.tag = tag
        self.ind1 = ind1
        self.ind2 = ind2
        self.subfields = subfields

    def encode(self) -> bytes:
        data = (self.ind1 + self.ind2).encode("utf-8")
        for code, value in self.subfields:
            data += SUBFIELD_DELIMITER + code.encode("utf-8") + value.encode("utf-8")
        return data + FIELD_TERMINATOR


class MarcRecord:
    """Leader template plus control and data fields in tag order"""

    __slots__ = ("leader_template", "control_fields", "data_fields")

    def __init__(self, leader_template: str) -> None:
        self.leader_template = leader_template
        self.control_fields: list[tuple[str, str]] = []
        self.data_fields: list[DataField] = []

    def add_control(self, tag: str, value: str) -> None:
        self.control_fields.append((tag, sub(DELIMITER_CHARACTERS, "", value)))

    def add(self, tag: str, ind1: str, ind2: str, *subfields: tuple[str, str | None]) -> None:
        """Add a data field without delimiter bytes in its values

        Empty subfields are dropped; nothing is added if all are empty.
        """
        present = []
        for code, value in subfields:
            cleaned = sub(DELIMITER_CHARACTERS, "", value) if value else ""
            if cleaned:
                present.append((code, cleaned))
        if present:
            self.data_fields.append(DataField(tag, ind1, ind2, present))

    def encoded_fields(self) -> list[tuple[str, bytes]]:
        """Tag and terminated field bytes, control fields first, both in tag order"""
        fields = [
            (tag, value.encode("utf-8") + FIELD_TERMINATOR)
            for tag, value in sorted(self.control_fields, key=lambda f: f[0])
        ]
        fields.extend(
            (field.tag, field.encode()) for field in sorted(self.data_fields, key=lambda f: f.tag)
        )
        return fields

    def oversized_fields(self) -> list[str]:
        return [tag for tag, data in self.encoded_fields() if len(data) > MAX_FIELD_LENGTH]

    def to_iso2709(self) -> bytes:
        """Serialize to an ISO 2709 record

        Raises:
            GenerationError: If a field or the record exceeds the format's length limits
        """
        directory = b""
        body = b""
        for tag, data in self.encoded_fields():
            if len(data) > MAX_FIELD_LENGTH:
                raise GenerationError(f"Field {tag} is {len(data)} bytes, limit {MAX_FIELD_LENGTH}")
            directory += f"{tag}{len(data):04d}{len(body):05d}".encode("ascii")
            body += data
        directory += FIELD_TERMINATOR

        base_address = LEADER_LENGTH + len(directory)
        record_length = base_address + len(body) + len(RECORD_TERMINATOR)
        if record_length > MAX_RECORD_LENGTH:
            raise GenerationError(f"Record is {record_length} bytes, limit {MAX_RECORD_LENGTH}")

        leader = self.leader(record_length, base_address)
        return leader.encode("ascii") + directory + body + RECORD_TERMINATOR

    def leader(self, record_length: int, base_address: int) -> str:
        return (
            f"{record_length:05d}"
            + self.leader_template[5:12]
            + f"{base_address:05d}"
            + self.leader_template[17:]
        )

    def record_length(self) -> int:
        """Total ISO 2709 length without serializing"""
        fields = self.encoded_fields()
        directory = len(fields) * DIRECTORY_ENTRY_LENGTH + len(FIELD_TERMINATOR)
        body = sum(len(data) for _, data in fields)
        return LEADER_LENGTH + directory + body + len(RECORD_TERMINATOR)


def _ordinal(number: int) -> str:
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def _nonfiling(title: str) -> str:
    lowered = title.lower()
    for article in NONFILING_ARTICLES:
        if lowered.startswith(article):
            return str(len(article))
    return "0"


def _field_008(work: Work, electronic_only: bool) -> str:
    entered = work.updated_at.strftime("%y%m%d") if work.updated_at else "000000"
    year = f"{work.publication_year:04d}" if work.publication_year else "uuuu"
    language = work.main_language or "und"
    form = "o" if electronic_only else " "
    # 00-17 dates and place, 18-34 books material, 35-39 language and source
    return f"{entered}s{year}    xx " + f"     {form}    " + " 000 0 " + f"{language} d"


def build_marc_record(work: Work) -> MarcRecord:
    """Build the shared MARC representation of a work"""
    level = "a" if work.work_type is WorkType.BOOK_CHAPTER else "m"
    record = MarcRecord(f"00000na{level} a2200000 i 4500")

    digital = [p for p in work.publications if not p.publication_type.is_print]
    electronic_only = bool(work.publications) and len(digital) == len(work.publications)

    record.add_control("001", work.work_id)
    if work.updated_at:
        record.add_control("005", work.updated_at.strftime("%Y%m%d%H%M%S.0"))
    if digital:
        record.add_control("007", "cr |||||||||||")
    record.add_control("008", _field_008(work, electronic_only))

    record.add("010", " ", " ", ("a", work.lccn))
    for publication in work.publications:
        if publication.valid_isbn:
            qualifier = publication.publication_type.value.lower()
            record.add("020", " ", " ", ("a", publication.valid_isbn), ("q", qualifier))
    if work.valid_doi:
        record.add("024", "7", " ", ("a", work.valid_doi), ("2", "doi"))
    if work.oclc:
        record.add("035", " ", " ", ("a", f"(OCoLC){work.oclc}"))
    if len(work.languages) > 1:
        record.add("041", "0", " ", *(("a", language.language_code) for language in work.languages))
    for subject in work.subjects_of(SubjectType.LCC):
        record.add("050", " ", "4", ("a", subject.subject_code))
    for subject in work.subjects:
        source = CLASSIFICATION_SOURCES.get(subject.subject_type)
        if source:
            record.add("072", " ", "7", ("a", subject.subject_code), ("2", source))

    main_entry = work.first_contributor
    if main_entry and main_entry.contribution_type is not ContributionType.AUTHOR:
        main_entry = None
    for contribution in work.contributions:
        orcid = f"https://orcid.org/{contribution.orcid}" if contribution.orcid else None
        affiliation = contribution.first_affiliation
        record.add(
            "100" if contribution is main_entry else "700",
            "1",
            " ",
            ("a", contribution.inverted_name),
            ("e", RELATOR_TERMS[contribution.contribution_type]),
            ("u", affiliation.institution_name if affiliation else None),
            ("1", orcid),
        )

    responsibility = ", ".join(c.full_name for c in work.contributions if c.main_contribution)
    record.add(
        "245",
        "1" if main_entry else "0",
        _nonfiling(work.title),
        ("a", work.title),
        ("b", work.subtitle),
        ("c", responsibility),
    )
    if work.edition:
        record.add("250", " ", " ", ("a", f"{_ordinal(work.edition)} edition."))
    record.add(
        "264",
        " ",
        "1",
        ("a", work.place),
        ("b", work.publisher_name),
        ("c", str(work.publication_year) if work.publication_year else None),
    )
    if work.page_count:
        extent = f"{work.page_count} pages"
        if electronic_only:
            extent = f"1 online resource ({extent})"
        record.add("300", " ", " ", ("a", extent))
    for issue in work.issues:
        record.add(
            "490",
            "0",
            " ",
            ("a", issue.series_name),
            ("x", issue.issn_digital or issue.issn_print),
            ("v", str(issue.issue_ordinal)),
        )
    if work.toc:
        record.add("505", "0", " ", ("a", strip_markup(work.toc)))
    if work.abstract:
        abstract = truncate_utf8(strip_markup(work.abstract), MAX_ABSTRACT_BYTES)
        record.add("520", " ", " ", ("a", abstract))
    for funding in work.fundings:
        record.add(
            "536",
            " ",
            " ",
            ("a", funding.funder_name),
            ("c", funding.grant_number),
            ("f", funding.project_name),
        )
    if work.license:
        record.add("540", " ", " ", ("a", work.copyright_holder), ("u", work.license))
    for subject in work.subjects:
        if subject.subject_type in (SubjectType.KEYWORD, SubjectType.CUSTOM):
            record.add("653", " ", " ", ("a", subject.subject_code))
    if work.doi_url:
        record.add("856", "4", "0", ("u", work.doi_url), ("z", "Connect to resource"))
    if work.landing_page:
        record.add("856", "4", "2", ("u", work.landing_page), ("3", "Publisher's website"))
    for publication in digital:
        location = publication.canonical_location
        if location and location.full_text_url:
            record.add(
                "856",
                "4",
                "0",
                ("u", location.full_text_url),
                ("q", publication.publication_type.value.lower()),
            )
    return record


def validate_marc(work: Work) -> list[Issue]:
    """Checks shared by both MARC serializations"""
    issues: list[Issue] = []
    if not work.has_minimal_identity:
        issues.append(Issue.error("identifier", "MARC 21 requires a DOI or at least one ISBN"))
    issues.extend(identifier_issues(work, Severity.WARNING))
    if work.publication_date is None:
        issues.append(Issue.warning("publication_date", "Date coded as unknown in 008"))
    if not work.contributions:
        issues.append(Issue.warning("contributions", "No main or added entries"))
    if work.abstract:
        size = len(strip_markup(work.abstract).encode("utf-8"))
        if size > MAX_ABSTRACT_BYTES:
            issues.append(
                Issue.warning(
                    "long_abstract",
                    f"Abstract is {size} bytes; truncated to {MAX_ABSTRACT_BYTES}",
                )
            )

    record = build_marc_record(work)
    for tag in record.oversized_fields():
        issues.append(Issue.error(f"marc.{tag}", f"Field exceeds {MAX_FIELD_LENGTH} bytes"))
    if record.record_length() > MAX_RECORD_LENGTH:
        issues.append(Issue.error("record", f"Record exceeds {MAX_RECORD_LENGTH} bytes"))
    return issues


class Marc21Specification:
    """Binary MARC 21 (ISO 2709); a combined document is plain concatenation"""

    format_id = "marc21"
    version = "1.0"
    name = "MARC 21 (ISO 2709)"
    content_type = "application/marc"
    file_extension = "mrc"

    def validate(self, work: Work) -> list[Issue]:
        return validate_marc(work)

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> MarcRecord:
        return build_marc_record(work)

    def assemble(self, fragments: Sequence[MarcRecord], sink: BinarySink) -> None:
        write_document(sink, b"".join(record.to_iso2709() for record in fragments))


class MarcXmlSpecification:
    """MARCXML slim schema; a combined document is one ``collection``"""

    format_id = "marcxml"
    version = "1.0"
    name = "MARCXML"
    content_type = "application/marcxml+xml"
    file_extension = "xml"

    def validate(self, work: Work) -> list[Issue]:
        return validate_marc(work)

    def generate(self, work: Work, sink: BinarySink) -> None:
        self.assemble([self.render_record(work)], sink)

    def render_record(self, work: Work) -> MarcRecord:
        return build_marc_record(work)

    def assemble(self, fragments: Sequence[MarcRecord], sink: BinarySink) -> None:
        collection = ET.Element("collection", {"xmlns": MARCXML_NAMESPACE})
        for record in fragments:
            collection.append(self._record_element(record))
        write_document(sink, serialize_xml(collection))

    @staticmethod
    def _record_element(record: MarcRecord) -> ET.Element:
        binary = record.to_iso2709()
        element = ET.Element("record")
        sub_element(element, "leader", binary[:LEADER_LENGTH].decode("ascii"))
        for tag, value in sorted(record.control_fields, key=lambda f: f[0]):
            sub_element(element, "controlfield", value, tag=tag)
        for field in sorted(record.data_fields, key=lambda f: f.tag):
            datafield = sub_element(
                element, "datafield", tag=field.tag, ind1=field.ind1, ind2=field.ind2
            )
            for code, value in field.subfields:
                sub_element(datafield, "subfield", value, code=code)
        return element
