# tests/unit/adapters/specifications/test_format_contracts.py

"""Behaviour shared by every registered format"""

# Standard library imports
from io import BytesIO
import xml.etree.ElementTree as ET

# Third party imports
import pytest

# Local imports
from biblio_export.core.domain.enums import PublicationType
from biblio_export.core.domain.enums import Severity
from biblio_export.core.domain.issue import has_errors
from tests.fixtures.works import WorkBuilder
from tests.fixtures.works import make_isbn

ALL_FORMATS = [
    ("bibtex", "1.0"),
    ("crossref", "5.3.1"),
    ("csl-json", "1.0"),
    ("csv", "1.0"),
    ("kbart", "1.0"),
    ("marc21", "1.0"),
    ("marcxml", "1.0"),
    ("onix", "2.1"),
    ("onix", "3.0"),
    ("tsv", "1.0"),
    ("xlsx", "1.0"),
]

XML_FORMATS = [("crossref", "5.3.1"), ("marcxml", "1.0"), ("onix", "2.1"), ("onix", "3.0")]

# Formats that cannot send an identifier they cannot vouch for
REJECTING_FORMATS = [("crossref", "5.3.1"), ("onix", "2.1"), ("onix", "3.0")]
OMITTING_FORMATS = [f for f in ALL_FORMATS if f not in REJECTING_FORMATS]


def _generate(specification, work) -> bytes:
    sink = BytesIO()
    specification.generate(work, sink)
    return sink.getvalue()


def _assemble(specification, works) -> bytes:
    sink = BytesIO()
    specification.assemble([specification.render_record(w) for w in works], sink)
    return sink.getvalue()


def _bad_isbn(serial: int) -> str:
    """ISBN-13 with a wrong check digit"""
    isbn = make_isbn(serial)
    return isbn[:12] + str((int(isbn[12]) + 1) % 10)


class TestDeterminism:
    """A fixed clock gives byte-identical output"""

    @pytest.mark.parametrize("format_id,version", ALL_FORMATS)
    def test_standalone_document_repeatable(self, registry, format_id, version):
        specification = registry.resolve(format_id, version)
        work = WorkBuilder.monograph()
        assert not has_errors(specification.validate(work))
        assert _generate(specification, work) == _generate(specification, work)

    @pytest.mark.parametrize("format_id,version", ALL_FORMATS)
    def test_combined_document_repeatable(self, registry, format_id, version):
        specification = registry.resolve(format_id, version)
        works = WorkBuilder.catalogue(3)
        assert _assemble(specification, works) == _assemble(specification, works)


class TestXmlWellFormed:
    """Text from the repository never breaks the XML formats"""

    @pytest.mark.parametrize("format_id,version", XML_FORMATS)
    def test_control_characters_dropped(self, registry, format_id, version):
        title = "Open\x0bBook\x0c \x01Edition"
        work = WorkBuilder.monograph(
            title=title,
            full_title=title,
            place="Cam\x01bridge",
            long_abstract="<p>Pasted\x0b from a\x02 word processor</p>",
        )
        specification = registry.resolve(format_id, version)
        assert not has_errors(specification.validate(work))

        root = ET.fromstring(_generate(specification, work))
        text = " ".join(root.itertext())
        assert "OpenBook Edition" in text
        assert "\x01" not in text

    @pytest.mark.parametrize("format_id,version", XML_FORMATS)
    def test_combined_document_survives_one_dirty_record(self, registry, format_id, version):
        dirty = WorkBuilder.monograph(2, title="Bad\x1bTitle", full_title="Bad\x1bTitle")
        specification = registry.resolve(format_id, version)
        data = _assemble(specification, [WorkBuilder.monograph(1), dirty])
        ET.fromstring(data)

    @pytest.mark.parametrize("format_id,version", [("crossref", "5.3.1"), ("onix", "3.0")])
    def test_abstract_entities_escaped_once(self, registry, format_id, version):
        work = WorkBuilder.monograph(long_abstract="<p>Text &amp; Data&#160;Mining</p>")
        data = _generate(registry.resolve(format_id, version), work)
        assert b"Text &amp; Data Mining" in data
        assert b"&amp;amp;" not in data


class TestUnusableIdentifiers:
    """Invalid DOIs and ISBNs reach the formats, which decide what they mean"""

    @staticmethod
    def _work():
        return WorkBuilder.monograph(
            doi="10.11647",
            publications=(
                WorkBuilder.publication(PublicationType.PAPERBACK, make_isbn(2)),
                WorkBuilder.publication(PublicationType.PDF, _bad_isbn(3)),
            ),
        )

    @pytest.mark.parametrize("format_id,version", REJECTING_FORMATS)
    def test_reported_as_errors(self, registry, format_id, version):
        issues = registry.resolve(format_id, version).validate(self._work())
        errors = {issue.field for issue in issues if issue.is_error}
        assert {"doi", "publications.isbn"} <= errors

    @pytest.mark.parametrize("format_id,version", OMITTING_FORMATS)
    def test_reported_as_warnings_and_left_out(self, registry, format_id, version):
        specification = registry.resolve(format_id, version)
        work = self._work()
        issues = specification.validate(work)
        assert not has_errors(issues)
        warned = {issue.field for issue in issues if issue.severity is Severity.WARNING}
        assert {"doi", "publications.isbn"} <= warned
        assert _bad_isbn(3).encode() not in _generate(specification, work)
