# tests/unit/adapters/specifications/test_crossref.py

"""Tests for Crossref deposit metadata"""

# Standard library imports
from io import BytesIO
import xml.etree.ElementTree as ET

# Local imports
from biblio_export.adapters.specifications.crossref import CROSSREF_NAMESPACE
from biblio_export.adapters.specifications.crossref import JATS_NAMESPACE
from biblio_export.adapters.specifications.crossref import CrossrefSpecification
from biblio_export.core.domain.enums import WorkType
from biblio_export.core.domain.issue import has_errors
from biblio_export.core.domain.work import Publication
from biblio_export.infrastructure.config import CrossrefConfig
from tests.fixtures.works import WorkBuilder
from tests.fixtures.works import make_isbn

NS = {"cr": CROSSREF_NAMESPACE, "jats": JATS_NAMESPACE}


def _generate(specification: CrossrefSpecification, work) -> bytes:
    sink = BytesIO()
    specification.generate(work, sink)
    return sink.getvalue()


class TestCrossrefValidation:
    """Crossref requires a DOI, landing page and date"""

    def test_missing_doi_gives_exactly_one_error(self):
        issues = CrossrefSpecification().validate(WorkBuilder.monograph(doi=None))
        errors = [issue for issue in issues if issue.is_error]
        assert len(errors) == 1
        assert errors[0].field == "doi"

    def test_complete_monograph_is_valid(self):
        assert CrossrefSpecification().validate(WorkBuilder.monograph()) == []

    def test_chapter_rejected(self):
        issues = CrossrefSpecification().validate(
            WorkBuilder.monograph(work_type=WorkType.BOOK_CHAPTER)
        )
        assert [i.field for i in issues if i.is_error] == ["work_type"]

    def test_missing_landing_page_and_date(self):
        issues = CrossrefSpecification().validate(
            WorkBuilder.monograph(landing_page=None, publication_date=None)
        )
        assert sorted(i.field for i in issues if i.is_error) == [
            "landing_page",
            "publication_date",
        ]

    def test_more_than_six_isbns_warns(self):
        publications = tuple(
            Publication(publication_id=f"p{n}", publication_type="PDF", isbn=make_isbn(100 + n))
            for n in range(7)
        )
        spec = CrossrefSpecification()
        issues = spec.validate(WorkBuilder.monograph(publications=publications))
        assert not has_errors(issues)
        assert [i.field for i in issues] == ["publications"]


class TestCrossrefOutput:
    """Generated doi_batch document"""

    def test_well_formed_deposit(self, fixed_clock):
        config = CrossrefConfig(depositor_name="Open Press", registrant="Open Press")
        spec = CrossrefSpecification(config, fixed_clock)
        root = ET.fromstring(_generate(spec, WorkBuilder.monograph()))

        assert root.tag == f"{{{CROSSREF_NAMESPACE}}}doi_batch"
        assert root.findtext("cr:head/cr:doi_batch_id", namespaces=NS) == (
            "biblio_export_20240501123000"
        )
        assert root.findtext("cr:head/cr:depositor/cr:depositor_name", namespaces=NS) == (
            "Open Press"
        )
        book = root.find("cr:body/cr:book", NS)
        assert book.get("book_type") == "monograph"
        metadata = book.find("cr:book_metadata", NS)
        assert metadata.get("language") == "en"
        assert metadata.findtext("cr:doi_data/cr:doi", namespaces=NS) == "10.11647/OBP.0001"
        assert metadata.findtext("cr:titles/cr:title", namespaces=NS) == "The Open Book"
        assert metadata.find("jats:abstract/jats:p", NS).text == (
            "Essays on open access publishing."
        )
        isbns = metadata.findall("cr:isbn", NS)
        assert [isbn.get("media_type") for isbn in isbns] == ["print", "electronic"]
        assert isbns[0].text == f"{make_isbn(2)[:3]}-{make_isbn(2)[3:12]}-{make_isbn(2)[12]}"

    def test_noisbn_without_publications(self, fixed_clock):
        work = WorkBuilder.monograph(publications=())
        root = ET.fromstring(_generate(CrossrefSpecification(clock=fixed_clock), work))
        assert root.find("cr:body/cr:book/cr:book_metadata/cr:noisbn", NS) is not None

    def test_contributor_sequence(self, fixed_clock):
        work = WorkBuilder.monograph(
            contributions=(
                WorkBuilder.contribution("Hopper", "Grace", rank=1),
                WorkBuilder.contribution("Turing", "Alan", rank=2),
            )
        )
        root = ET.fromstring(_generate(CrossrefSpecification(clock=fixed_clock), work))
        people = root.findall("cr:body/cr:book/cr:book_metadata/cr:contributors/cr:person_name", NS)
        assert [p.get("sequence") for p in people] == ["first", "additional"]
        assert [p.findtext("cr:surname", namespaces=NS) for p in people] == ["Hopper", "Turing"]
